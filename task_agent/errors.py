"""Error taxonomy for the task agent.

Per-task errors (InvalidAddress, NetworkError, TransactionRejected, DexError,
UnhandledDispatchError) are caught at the task boundary and turned into a
``failed`` status. ConfigMissing, ConfigInvalid and a StorageError raised
while opening the database end the process with exit code 1.
"""


class AgentError(Exception):
    pass


class ConfigMissing(AgentError):
    def __init__(self, var: str, message: str | None = None):
        self.var = var
        super().__init__(message or f"Required environment variable {var} is not set")


class ConfigInvalid(AgentError):
    def __init__(self, var: str, value):
        self.var = var
        self.value = value
        super().__init__(f"Invalid value for {var}: {value!r}")


class StorageError(AgentError):
    pass


class InvalidAddress(AgentError):
    def __init__(self, value, reason: str | None = None):
        self.value = value
        msg = f"Invalid public key: {value}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class NetworkError(AgentError):
    pass


class TransactionRejected(AgentError):
    pass


class DexError(AgentError):
    pass


class UnhandledDispatchError(AgentError):
    def __init__(self, task_id: int, cause: BaseException):
        self.task_id = task_id
        self.cause = cause
        super().__init__(f"Error processing task {task_id}: {cause!r}")
