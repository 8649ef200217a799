import json
import sqlite3
from typing import Any, Dict, List, Optional, Tuple

from .errors import StorageError
from .models import Task, PENDING, TERMINAL_STATUSES


class TaskStore:
    """SQLite-backed task table.

    One connection is opened by init_db() and reused for the process lifetime.
    Rows are never deleted; the table only grows.
    """

    def __init__(self, db_path: str):
        self.db_path = str(db_path)
        self.conn: Optional[sqlite3.Connection] = None

    def init_db(self):
        """Open the database and create the tasks table if it does not exist."""
        try:
            conn = sqlite3.connect(self.db_path)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    type TEXT,
                    status TEXT,
                    data TEXT
                )
            """)
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Error initializing database {self.db_path}: {e}") from e
        self.conn = conn

    def close(self):
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def _cursor(self) -> sqlite3.Cursor:
        if self.conn is None:
            raise StorageError("Task database not initialized")
        return self.conn.cursor()

    ## Writes

    def add_task(self, kind: str, payload: Dict[str, Any] | None = None) -> int:
        """Insert a pending task and return its id. Raises StorageError."""
        try:
            data = json.dumps(payload if payload is not None else {})
        except (TypeError, ValueError) as e:
            raise StorageError(f"Task payload is not serializable: {e}") from e
        try:
            cursor = self._cursor()
            cursor.execute(
                "INSERT INTO tasks (type, status, data) VALUES (?, ?, ?)",
                (kind, PENDING, data),
            )
            self.conn.commit()
            return int(cursor.lastrowid)
        except sqlite3.Error as e:
            raise StorageError(f"Error adding task: {e}") from e

    def update_task_status(self, task_id: int, status: str) -> bool:
        """Move a pending task to a terminal status.

        Unknown ids and tasks that already left ``pending`` are left untouched
        and False is returned. Storage errors are printed, never raised.
        """
        if status not in TERMINAL_STATUSES:
            print(f"Error updating task status: refusing status {status!r} for task {task_id}")
            return False
        try:
            cursor = self._cursor()
            cursor.execute(
                "UPDATE tasks SET status = ? WHERE id = ? AND status = ?",
                (status, task_id, PENDING),
            )
            self.conn.commit()
            return cursor.rowcount > 0
        except (sqlite3.Error, StorageError) as e:
            print(f"Error updating task status: {e}")
            return False

    ## Reads

    def get_pending_tasks(self) -> List[Task]:
        """All pending tasks in insertion order; [] if the query fails."""
        try:
            cursor = self._cursor()
            cursor.execute(
                "SELECT id, type, status, data FROM tasks WHERE status = ? ORDER BY id ASC",
                (PENDING,),
            )
            rows = cursor.fetchall()
        except (sqlite3.Error, StorageError) as e:
            print(f"Error getting pending tasks: {e}")
            return []
        return [_row_to_task(row) for row in rows]

    def get_task(self, task_id: int) -> Task | None:
        cursor = self._cursor()
        cursor.execute("SELECT id, type, status, data FROM tasks WHERE id = ?", (task_id,))
        row = cursor.fetchone()
        return _row_to_task(row) if row else None

    def list_tasks(self, status: str | None = None, limit: int = 1000) -> List[Task]:
        """Tasks ordered by id, optionally filtered by exact status."""
        cursor = self._cursor()
        if status is not None:
            cursor.execute(
                "SELECT id, type, status, data FROM tasks WHERE status = ? ORDER BY id ASC LIMIT ?",
                (status, limit),
            )
        else:
            cursor.execute("SELECT id, type, status, data FROM tasks ORDER BY id ASC LIMIT ?", (limit,))
        return [_row_to_task(row) for row in cursor.fetchall()]

    def count_by_status(self) -> Dict[str, int]:
        cursor = self._cursor()
        cursor.execute("SELECT status, COUNT(*) FROM tasks GROUP BY status")
        return {status: int(n) for status, n in cursor.fetchall()}


def _decode_payload(task_id: int, data: str | None) -> Dict[str, Any]:
    if not data:
        return {}
    try:
        payload = json.loads(data)
    except (TypeError, ValueError):
        print(f"Warning: task {task_id} has undecodable payload {data!r}; treating as empty")
        return {}
    return payload if isinstance(payload, dict) else {}


def _row_to_task(row: Tuple[int, str, str, str]) -> Task:
    task_id, kind, status, data = row
    return Task(id=int(task_id), kind=kind, status=status, payload=_decode_payload(task_id, data))
