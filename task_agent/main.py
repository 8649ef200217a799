import signal
import sys
import threading

from . import config
from .errors import ConfigInvalid, ConfigMissing, StorageError
from .executor import TaskExecutor, default_dex_factory
from .models import TRANSFER, DEX_TRADE
from .poller import run_forever
from .solana_client import SolanaClient, format_sol, load_keypair
from .task_store import TaskStore


def _install_signal_handlers(stop_event: threading.Event):
    """Ctrl+C (SIGINT) or SIGTERM stop the loop after the current task."""

    def _request_stop(signum, frame):
        try:
            sig_name = signal.Signals(signum).name
        except ValueError:
            sig_name = str(signum)
        print(f"Received {sig_name}, stopping after the current task…")
        stop_event.set()

    for _sig in ("SIGINT", "SIGTERM"):
        if hasattr(signal, _sig):
            try:
                signal.signal(getattr(signal, _sig), _request_stop)
            except (ValueError, OSError):
                # not the main thread (e.g. embedded in tests)
                pass


def seed_example_tasks(store: TaskStore, settings: config.Settings) -> list[int]:
    """Queue one example transfer and one example DEX trade."""
    ids = []
    examples = [
        (TRANSFER, {"to": settings.recipient_public_key, "amount": float(settings.seed_transfer_amount)}),
        (DEX_TRADE, {}),
    ]
    for kind, payload in examples:
        try:
            ids.append(store.add_task(kind, payload))
        except StorageError as e:
            print(f"Error adding task: {e}")
    return ids


def run(env=None, solana: SolanaClient | None = None, dex_factory=default_dex_factory,
        stop_event: threading.Event | None = None, max_cycles: int | None = None) -> int:
    try:
        settings = config.load_settings(env)
    except (ConfigMissing, ConfigInvalid) as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    try:
        keypair = load_keypair(settings.private_key)
    except Exception as e:
        print(f"Private key could not be loaded: {e}", file=sys.stderr)
        sys.exit(1)

    print("Agent started")
    print(f"   Solana RPC: {settings.rpc_url}")
    print(f"   Wallet: {keypair.pubkey()}")
    print(f"   Task DB: {settings.db_path}")
    print(f"   Poll interval: {settings.poll_interval}s")

    store = TaskStore(settings.db_path)
    try:
        store.init_db()
    except StorageError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    if solana is None:
        solana = SolanaClient.from_settings(settings)

    try:
        balance = solana.get_balance(keypair.pubkey())
        print(f"Balance: {format_sol(balance)} SOL")
    except Exception as e:
        print(f"   Startup balance error: {e}")

    if settings.seed_example_tasks:
        seeded = seed_example_tasks(store, settings)
        print(f"   Seeded example tasks: {seeded}")

    try:
        counts = store.count_by_status()
        print("   Tasks: " + ", ".join(f"{k}={v}" for k, v in sorted(counts.items())))
    except Exception as e:
        print(f"   Task summary error: {e}")
    print()

    executor = TaskExecutor(store, solana, keypair, settings, dex_factory=dex_factory)

    if stop_event is None:
        stop_event = threading.Event()
        _install_signal_handlers(stop_event)

    try:
        run_forever(executor.process_pending, settings.poll_interval, stop_event, max_cycles=max_cycles)
    except KeyboardInterrupt:
        print()
        print("Shutting down…")
    finally:
        store.close()
    return 0
