"""TaskStore SQLite 实现

提供按 id 点查、条件更新、按 (mode, status) 计数、
按 id 集合批量更新、逾期查询等数据库操作。
事务边界由调用方（write_transaction）控制，此处不 commit。
"""

from collections.abc import Iterable
from datetime import datetime
from enum import Enum

import aiosqlite

from ..models.enums import TaskMode, TaskStatus
from ..models.task import Task, to_utc

_COLUMNS = (
    "task_id, project_id, title, type, mode, status, priority, reference_link, "
    "drive_link, duration_minutes, due_at, started_at, created_at, updated_at"
)

# 允许通过 update_task_fields 修改的列（task_id / mode / created_at 不可变）
_MUTABLE_COLUMNS = frozenset(
    {
        "title",
        "status",
        "priority",
        "reference_link",
        "drive_link",
        "duration_minutes",
        "due_at",
        "started_at",
        "updated_at",
    }
)


def format_ts(value: datetime | None) -> str | None:
    """datetime -> 存储格式（UTC ISO-8601，固定微秒精度，保证字符串可比较）"""
    if value is None:
        return None
    return to_utc(value).isoformat(timespec="microseconds")


def _parse_ts(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _to_db(value: object) -> object:
    if isinstance(value, datetime):
        return format_ts(value)
    if isinstance(value, Enum):
        return value.value
    return value


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        await self._conn.execute(
            f"""
            INSERT INTO tasks ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.task_id,
                task.project_id,
                task.title,
                task.type.value,
                task.mode.value,
                task.status.value,
                task.priority,
                task.reference_link,
                task.drive_link,
                task.duration_minutes,
                format_ts(task.due_at),
                format_ts(task.started_at),
                format_ts(task.created_at),
                format_ts(task.updated_at),
            ),
        )

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def delete_task(self, task_id: str) -> bool:
        """删除任务记录，返回是否命中一行"""
        cursor = await self._conn.execute(
            "DELETE FROM tasks WHERE task_id = ?", (task_id,)
        )
        return cursor.rowcount == 1

    async def list_tasks(
        self,
        status: str | None = None,
        project_id: str | None = None,
    ) -> list[Task]:
        """查询任务列表，支持按状态、项目筛选，按 created_at 倒序"""
        clauses: list[str] = []
        params: list[object] = []
        if status:
            clauses.append("status = ?")
            params.append(status)
        if project_id:
            clauses.append("project_id = ?")
            params.append(project_id)

        sql = f"SELECT {_COLUMNS} FROM tasks"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at DESC"

        cursor = await self._conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def count_tasks(
        self,
        mode: TaskMode,
        status: TaskStatus,
        exclude_task_id: str | None = None,
    ) -> int:
        """按 (mode, status) 计数，可排除指定任务"""
        sql = "SELECT COUNT(*) FROM tasks WHERE mode = ? AND status = ?"
        params: list[object] = [mode.value, status.value]
        if exclude_task_id is not None:
            sql += " AND task_id != ?"
            params.append(exclude_task_id)
        cursor = await self._conn.execute(sql, params)
        row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def get_active_block_task(self) -> Task | None:
        """返回当前占用 block 槽位的任务（如有）"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM tasks WHERE mode = ? AND status = ? LIMIT 1",
            (TaskMode.BLOCK.value, TaskStatus.PROCESSING.value),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def update_task_fields(
        self,
        task_id: str,
        fields: dict[str, object],
        *,
        expected_statuses: Iterable[TaskStatus] | None = None,
        excluded_statuses: Iterable[TaskStatus] | None = None,
    ) -> bool:
        """按 task_id 条件更新若干字段

        Args:
            task_id: 任务 ID
            fields: 列名 -> 新值
            expected_statuses: 仅当当前状态属于该集合时更新
            excluded_statuses: 仅当当前状态不属于该集合时更新

        Returns:
            True 如果有一行被更新
        """
        unknown = set(fields) - _MUTABLE_COLUMNS
        if unknown:
            raise ValueError(f"不可更新的列: {sorted(unknown)}")
        if not fields:
            raise ValueError("fields 不能为空")

        assignments = ", ".join(f"{column} = ?" for column in fields)
        params: list[object] = [_to_db(value) for value in fields.values()]
        sql = f"UPDATE tasks SET {assignments} WHERE task_id = ?"
        params.append(task_id)

        if expected_statuses is not None:
            expected = [s.value for s in expected_statuses]
            sql += f" AND status IN ({', '.join('?' * len(expected))})"
            params.extend(expected)
        if excluded_statuses is not None:
            excluded = [s.value for s in excluded_statuses]
            sql += f" AND status NOT IN ({', '.join('?' * len(excluded))})"
            params.extend(excluded)

        cursor = await self._conn.execute(sql, params)
        return cursor.rowcount == 1

    async def list_overdue_tasks(self, now: datetime) -> list[Task]:
        """查询 processing 且 due_at 已过的任务"""
        cursor = await self._conn.execute(
            f"""
            SELECT {_COLUMNS} FROM tasks
            WHERE status = ? AND due_at IS NOT NULL AND due_at < ?
            ORDER BY due_at ASC
            """,
            (TaskStatus.PROCESSING.value, format_ts(now)),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def bulk_update_status(
        self,
        task_ids: list[str],
        status: TaskStatus,
        updated_at: datetime,
        expected_status: TaskStatus | None = None,
    ) -> int:
        """按 id 集合批量更新状态（单条 UPDATE 语句）

        Returns:
            受影响行数
        """
        if not task_ids:
            return 0
        placeholders = ", ".join("?" * len(task_ids))
        sql = (
            "UPDATE tasks SET status = ?, updated_at = ? "
            f"WHERE task_id IN ({placeholders})"
        )
        params: list[object] = [status.value, format_ts(updated_at), *task_ids]
        if expected_status is not None:
            sql += " AND status = ?"
            params.append(expected_status.value)
        cursor = await self._conn.execute(sql, params)
        return cursor.rowcount

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型（列顺序与 _COLUMNS 一致）"""
        return Task(
            task_id=row[0],
            project_id=row[1],
            title=row[2],
            type=row[3],
            mode=row[4],
            status=row[5],
            priority=row[6],
            reference_link=row[7],
            drive_link=row[8],
            duration_minutes=row[9],
            due_at=_parse_ts(row[10]),
            started_at=_parse_ts(row[11]),
            created_at=_parse_ts(row[12]),
            updated_at=_parse_ts(row[13]),
        )
