from dataclasses import dataclass, field
from typing import Any, Dict, Optional

# Task statuses
PENDING = "pending"
COMPLETED = "completed"
FAILED = "failed"
TERMINAL_STATUSES = (COMPLETED, FAILED)

# Task kinds
TRANSFER = "transfer"
DEX_TRADE = "dex_trade"


@dataclass
class Task:
    id: int
    kind: str
    status: str
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TaskResult:
    """Outcome of one handler run; the executor turns it into a status."""
    ok: bool
    error: Optional[Exception] = None
    signatures: list = field(default_factory=list)

    @classmethod
    def success(cls, *signatures: str) -> "TaskResult":
        return cls(True, None, list(signatures))

    @classmethod
    def failure(cls, error: Exception) -> "TaskResult":
        return cls(False, error)

    @property
    def status(self) -> str:
        return COMPLETED if self.ok else FAILED
