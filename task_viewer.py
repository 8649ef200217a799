#!/usr/bin/env python3
"""Task Viewer - inspect and enqueue agent tasks.

Usage:
    python task_viewer.py                              # Summary + all tasks
    python task_viewer.py --status failed              # Only failed tasks
    python task_viewer.py --add-transfer <ADDR> 0.01   # Queue a SOL transfer
    python task_viewer.py --add-dex-trade              # Queue a DEX trade
"""

import argparse
import json
import os
import sys

from task_agent.errors import InvalidAddress, StorageError
from task_agent.models import COMPLETED, DEX_TRADE, FAILED, PENDING, TRANSFER
from task_agent.solana_client import parse_public_key
from task_agent.task_store import TaskStore

# Default database path (can be overridden via TASK_DB_PATH env var)
DB_PATH = os.getenv("TASK_DB_PATH", "agent.db")


# Terminal colors
class Colors:
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'


STATUS_COLORS = {PENDING: Colors.YELLOW, COMPLETED: Colors.GREEN, FAILED: Colors.RED}


def color(text: str, c: str) -> str:
    """Apply color to text if terminal supports it."""
    if sys.stdout.isatty():
        return f"{c}{text}{Colors.ENDC}"
    return text


def truncate(s: str | None, max_len: int = 20) -> str:
    if not s:
        return "N/A"
    s = str(s)
    if len(s) <= max_len:
        return s
    return s[:max_len-3] + "..."


def print_table(headers: list[str], rows: list[list[str]], title: str = ""):
    """Print a formatted ASCII table."""
    if not rows:
        print(color(f"\n  No {title.lower()} found.\n", Colors.DIM))
        return

    col_widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            col_widths[i] = max(col_widths[i], len(str(cell)))

    separator = "+" + "+".join("-" * (w + 2) for w in col_widths) + "+"
    row_fmt = "|" + "|".join(f" {{:<{w}}} " for w in col_widths) + "|"

    if title:
        total_width = sum(col_widths) + len(col_widths) * 3 + 1
        print()
        print(color(f" {title} ".center(total_width, "="), Colors.BOLD + Colors.CYAN))

    print(separator)
    print(color(row_fmt.format(*headers), Colors.BOLD))
    print(separator)
    for row in rows:
        print(row_fmt.format(*[str(c) for c in row]))
    print(separator)
    print(f"  Total: {len(rows)} entries\n")


def display_summary(store: TaskStore):
    counts = store.count_by_status()
    print()
    print(color(" TASK SUMMARY ".center(40, "="), Colors.BOLD + Colors.YELLOW))
    for status in (PENDING, COMPLETED, FAILED):
        print(f"  {color(status.ljust(10), STATUS_COLORS[status])} {counts.get(status, 0)}")
    others = {k: v for k, v in counts.items() if k not in STATUS_COLORS}
    for status, n in sorted(others.items(), key=lambda kv: str(kv[0])):
        print(f"  {str(status).ljust(10)} {n}")
    print()


def display_tasks(store: TaskStore, status: str | None, limit: int):
    rows = []
    for task in store.list_tasks(status=status, limit=limit):
        rows.append([
            task.id,
            task.kind,
            color(task.status, STATUS_COLORS.get(task.status, "")),
            truncate(json.dumps(task.payload), 60),
        ])
    title = f"{status.capitalize()} Tasks" if status else "Tasks"
    print_table(["ID", "Kind", "Status", "Payload"], rows, title)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Inspect and enqueue tasks in the agent's task table.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Tasks are never retried automatically. To retry a failed task, queue a new one.
        """
    )
    parser.add_argument("--status", choices=[PENDING, COMPLETED, FAILED], help="Show only tasks with this status")
    parser.add_argument("--limit", type=int, default=200, help="Maximum rows to show (default: 200)")
    parser.add_argument("--add-transfer", nargs=2, metavar=("TO", "AMOUNT"), help="Queue a SOL transfer task")
    parser.add_argument("--add-dex-trade", action="store_true", help="Queue a DEX trade task")
    parser.add_argument("--db", type=str, help="Path to database file (default: agent.db)")

    args = parser.parse_args(argv)
    db_path = args.db or DB_PATH

    adding = bool(args.add_transfer or args.add_dex_trade)
    if not adding and not os.path.exists(db_path):
        print(color(f"Error: Database not found at {db_path}", Colors.RED))
        print("Set TASK_DB_PATH environment variable or use --db flag.")
        return 1

    store = TaskStore(db_path)
    try:
        store.init_db()
        if args.add_transfer:
            to, amount = args.add_transfer
            try:
                parse_public_key(to)
                amount_value = float(amount)
            except (InvalidAddress, ValueError) as e:
                print(color(f"Error: {e}", Colors.RED))
                return 1
            task_id = store.add_task(TRANSFER, {"to": to, "amount": amount_value})
            print(f"  Queued transfer task {task_id}: {amount_value} SOL -> {to}")
        if args.add_dex_trade:
            task_id = store.add_task(DEX_TRADE, {})
            print(f"  Queued dex_trade task {task_id}")
        if adding:
            return 0

        print(f"  Database: {db_path}")
        display_summary(store)
        display_tasks(store, args.status, args.limit)
    except StorageError as e:
        print(color(f"Error: {e}", Colors.RED))
        return 1
    finally:
        store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
