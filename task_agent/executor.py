from decimal import Decimal
from typing import Callable, Dict

from solders.keypair import Keypair
from solders.system_program import TransferParams, transfer

from .errors import AgentError, InvalidAddress, UnhandledDispatchError
from .models import Task, TaskResult, FAILED, TRANSFER, DEX_TRADE
from .solana_client import SolanaClient, parse_public_key, sol_to_lamports


# Lightweight structured logging for the task lifecycle
def _log(event: str, **fields):
    parts = [f"{event}"]
    for k, v in fields.items():
        if v is not None:
            parts.append(f"{k}={v}")
    print(" ".join(parts))


def default_dex_factory(settings):
    # Imported on first dex_trade so transfers never touch the DEX stack.
    from .raydium import RaydiumClient
    return RaydiumClient.from_settings(settings)


class TaskExecutor:
    """Runs one pending task to a terminal status.

    Each handler returns a TaskResult; process_task() writes exactly one status
    derived from it. Errors never escape process_task().
    """

    def __init__(self, store, solana: SolanaClient, keypair: Keypair, settings,
                 dex_factory: Callable = default_dex_factory):
        self.store = store
        self.solana = solana
        self.keypair = keypair
        self.settings = settings
        self._dex_factory = dex_factory
        self._dex = None
        self.handlers: Dict[str, Callable[[Task], TaskResult]] = {
            TRANSFER: self.handle_transfer,
            DEX_TRADE: self.handle_dex_trade,
        }

    @property
    def dex(self):
        if self._dex is None:
            self._dex = self._dex_factory(self.settings)
        return self._dex

    def process_task(self, task: Task) -> str:
        print(f"Processing task {task.id} of type {task.kind}")
        try:
            handler = self.handlers.get(task.kind)
            if handler is None:
                # No handler for this kind; nothing to do.
                _log("TASK_KIND_UNHANDLED", task_id=task.id, kind=task.kind)
                result = TaskResult.success()
            else:
                result = handler(task)
        except Exception as e:
            err = UnhandledDispatchError(task.id, e)
            print(str(err))
            result = TaskResult.failure(err)

        status = result.status
        self.store.update_task_status(task.id, status)
        _log("TASK_FINISHED", task_id=task.id, kind=task.kind, status=status,
             error=result.error if status == FAILED else None)
        return status

    def process_pending(self) -> int:
        """Run every currently pending task, one after another."""
        tasks = self.store.get_pending_tasks()
        for task in tasks:
            self.process_task(task)
        return len(tasks)

    ## Handlers

    def handle_transfer(self, task: Task) -> TaskResult:
        to = task.payload.get("to")
        try:
            to_pubkey = parse_public_key(to)
        except InvalidAddress as e:
            print(f"Invalid public key: {to} (task {task.id})")
            return TaskResult.failure(e)

        try:
            lamports = sol_to_lamports(task.payload.get("amount"))
            ix = transfer(TransferParams(
                from_pubkey=self.keypair.pubkey(),
                to_pubkey=to_pubkey,
                lamports=lamports,
            ))
            sig = self.solana.send_transaction([ix], [self.keypair])
            print(f"Transaction sent: {sig}")
            self.solana.confirm_transaction(sig)
            print(f"Transaction confirmed: {sig}")
        except AgentError as e:
            print(f"Error processing transfer for task {task.id} to {to}: {e}")
            return TaskResult.failure(e)
        return TaskResult.success(sig)

    def handle_dex_trade(self, task: Task) -> TaskResult:
        s = self.settings
        sigs = []
        try:
            dex = self.dex
            pool_info = dex.get_pool_info(s.raydium_pool_id)
            _log("DEX_POOL_LOADED", task_id=task.id, pool=s.raydium_pool_id,
                 type=pool_info.get("type"), program=pool_info.get("programId"))
            parse_public_key(s.base_token_mint)
            parse_public_key(s.quote_token_mint)

            txs = dex.make_swap_transaction(
                pool_info=pool_info,
                owner=self.keypair.pubkey(),
                base_mint=s.base_token_mint,
                quote_mint=s.quote_token_mint,
                base_amount=Decimal(s.dex_base_amount),
                quote_amount=Decimal(s.dex_quote_amount),
                fixed_side=s.dex_fixed_side,
                slippage=Decimal(s.dex_slippage),
            )
            for tx in txs:
                sig = self.solana.send_transaction(tx, [self.keypair])
                print(f"DEX trade transaction sent: {sig}")
                self.solana.confirm_transaction(sig)
                print(f"DEX trade transaction confirmed: {sig}")
                sigs.append(sig)
        except AgentError as e:
            print(f"Error processing DEX trade for task {task.id}: {e}")
            return TaskResult.failure(e)
        return TaskResult.success(*sigs)
