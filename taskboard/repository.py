"""
Task storage backend (SQLite).

Reference persistence layer behind the board API. Keeps the same shape as
the in-memory store: one flat ordering (position) plus a status column.
Lane order is derived from position, never stored per lane.
"""
import sqlite3
import json
import logging
from pathlib import Path
from dataclasses import replace
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone

from .projector import reorder
from .schema import MoveIntent, TaskItem, TaskPriority, TaskStatus, _parse_dt

logger = logging.getLogger(__name__)

# Wire name -> column, for fields PATCH may touch
_UPDATABLE = {
    "title": "title",
    "description": "description",
    "status": "status",
    "priority": "priority",
    "progress": "progress",
    "dueDate": "due_date",
    "assignedTo": "assigned_to",
    "tags": "tags",
}
_JSON_COLUMNS = ("tags", "assigned_to", "comments", "attachments")


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection with WAL mode."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TaskRepository:
    """SQLite-backed store for board tasks."""

    def __init__(self, db_path: str):
        """Initialize store and create tables if needed."""
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        """Create tables if they don't exist."""
        with _connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT DEFAULT '',
                    status TEXT NOT NULL DEFAULT 'todo',
                    priority TEXT DEFAULT 'medium',
                    progress INTEGER DEFAULT 0,
                    position INTEGER NOT NULL,
                    due_date TEXT,
                    completed_at TEXT,
                    tags TEXT,         -- JSON list
                    assigned_to TEXT,  -- JSON object
                    comments TEXT,     -- JSON list
                    attachments TEXT,  -- JSON list
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_position ON tasks(position)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status)")
            conn.commit()

    def save(self, task: TaskItem) -> TaskItem:
        """Insert or replace a task. New tasks go to the end of the board."""
        data = task.to_dict()
        now = _now()
        with _connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT position, created_at FROM tasks WHERE id = ?", (task.id,)
            ).fetchone()
            if row:
                position, created_at = row["position"], row["created_at"]
            else:
                position = conn.execute(
                    "SELECT COALESCE(MAX(position), -1) + 1 FROM tasks"
                ).fetchone()[0]
                created_at = now
            conn.execute("""
                INSERT OR REPLACE INTO tasks
                (id, title, description, status, priority, progress, position,
                 due_date, completed_at, tags, assigned_to, comments, attachments,
                 created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                data["id"],
                data["title"],
                data["description"],
                data["status"],
                data["priority"],
                data["progress"],
                position,
                data["dueDate"],
                data["completedAt"],
                json.dumps(data["tags"]),
                json.dumps(data["assignedTo"]),
                json.dumps(data["comments"]),
                json.dumps(data["attachments"]),
                created_at,
                now,
            ))
            conn.commit()
        return task

    def get(self, task_id: str) -> Optional[TaskItem]:
        with _connect(self.db_path) as conn:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return self._row_to_task(row) if row else None

    def list_all(self) -> List[TaskItem]:
        """All tasks in board order."""
        with _connect(self.db_path) as conn:
            rows = conn.execute("SELECT * FROM tasks ORDER BY position ASC").fetchall()
        return [self._row_to_task(row) for row in rows]

    def move(self, intent: MoveIntent) -> None:
        """
        Persist a reorder. Places the task at destination_index among the
        destination lane's tasks; the status itself changes via update().
        Raises KeyError if the task does not exist.
        """
        with _connect(self.db_path) as conn:
            rows = conn.execute("SELECT id, status FROM tasks ORDER BY position ASC").fetchall()
            ordered = reorder(
                [(r["id"], TaskStatus(r["status"])) for r in rows],
                intent.task_id,
                intent.destination_status,
                intent.destination_index,
                id_of=lambda r: r[0],
                status_of=lambda r: r[1],
            )
            now = _now()
            conn.executemany(
                "UPDATE tasks SET position = ?, updated_at = ? WHERE id = ?",
                [(i, now, task_id) for i, (task_id, _) in enumerate(ordered)],
            )
            conn.commit()
        logger.info(
            f"Persisted move of {intent.task_id} to "
            f"{intent.destination_status.value}[{intent.destination_index}]"
        )

    def update(self, task_id: str, updates: Dict[str, Any]) -> TaskItem:
        """
        Apply a partial update given in wire names. Completing a task stamps
        completed_at and sets progress to 100.

        The updated task is built and checked in memory first; nothing is
        written unless every field parses.

        Raises KeyError for unknown tasks, ValueError for bad fields.
        """
        task = self.get(task_id)
        if task is None:
            raise KeyError(task_id)

        unknown = set(updates) - set(_UPDATABLE)
        if unknown:
            raise ValueError(f"Fields cannot be updated: {sorted(unknown)}")

        changes: Dict[str, Any] = {}
        for key, value in updates.items():
            if key == "status":
                value = TaskStatus.from_str(value)
            elif key == "priority":
                value = TaskPriority.from_str(value)
            elif key == "dueDate":
                value = _parse_dt(value)
            elif key in ("title", "description") and not isinstance(value, str):
                raise ValueError(f"{key} must be a string")
            elif key == "tags" and not isinstance(value, list):
                raise ValueError("tags must be a list")
            elif key == "assignedTo" and value is not None and not isinstance(value, dict):
                raise ValueError("assignedTo must be an object")
            changes[_UPDATABLE[key]] = value

        try:
            updated = replace(task, **changes)
        except TypeError as e:
            raise ValueError(str(e)) from e
        if not updated.title.strip():
            raise ValueError("title is required")

        if updated.status == TaskStatus.COMPLETED and task.status != TaskStatus.COMPLETED:
            updated.completed_at = datetime.now(timezone.utc)
            updated.progress = 100

        data = updated.to_dict()
        with _connect(self.db_path) as conn:
            conn.execute("""
                UPDATE tasks SET title = ?, description = ?, status = ?, priority = ?,
                    progress = ?, due_date = ?, completed_at = ?, tags = ?,
                    assigned_to = ?, updated_at = ?
                WHERE id = ?
            """, (
                data["title"],
                data["description"],
                data["status"],
                data["priority"],
                data["progress"],
                data["dueDate"],
                data["completedAt"],
                json.dumps(data["tags"]),
                json.dumps(data["assignedTo"]),
                _now(),
                task_id,
            ))
            conn.commit()
        logger.info(f"Updated {task_id}: {sorted(updates)}")
        return updated

    def next_task_id(self) -> str:
        """Generate the next task ID from the row count. Single-writer safe."""
        with _connect(self.db_path) as conn:
            count = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()[0]
            while True:
                count += 1
                candidate = f"TASK-{count:03d}"
                if not conn.execute("SELECT 1 FROM tasks WHERE id = ?", (candidate,)).fetchone():
                    return candidate

    def _row_to_task(self, row: sqlite3.Row) -> TaskItem:
        """Convert a database row to a TaskItem."""
        data = dict(row)
        for column in _JSON_COLUMNS:
            try:
                data[column] = json.loads(data[column]) if data.get(column) else None
            except (json.JSONDecodeError, TypeError):
                data[column] = None
        return TaskItem.from_dict(data)
