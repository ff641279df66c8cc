"""SQLite 数据库初始化

PRAGMA 配置 + tasks 表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# tasks 表 DDL
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id          TEXT PRIMARY KEY,
    project_id       TEXT,
    title            TEXT NOT NULL DEFAULT '',
    type             TEXT NOT NULL DEFAULT 'REMINDER',
    mode             TEXT NOT NULL CHECK (mode IN ('block', 'deadline')),
    status           TEXT NOT NULL DEFAULT 'assigned'
                     CHECK (status IN ('assigned', 'processing', 'done', 'expired')),
    priority         INTEGER NOT NULL DEFAULT 2,
    reference_link   TEXT,
    drive_link       TEXT,
    duration_minutes INTEGER,
    due_at           TEXT,
    started_at       TEXT,
    created_at       TEXT NOT NULL,
    updated_at       TEXT NOT NULL
);
"""

# 全局 block 槽位约束的索引名（冲突识别依赖此名称）
ACTIVE_BLOCK_INDEX = "idx_tasks_active_block"

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_project_id ON tasks(project_id);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at DESC);",
    # 逾期扫描：status = processing AND due_at < now
    "CREATE INDEX IF NOT EXISTS idx_tasks_status_due_at ON tasks(status, due_at);",
    # 至多一行满足 mode = block AND status = processing（部分唯一索引）
    (
        f"CREATE UNIQUE INDEX IF NOT EXISTS {ACTIVE_BLOCK_INDEX} "
        "ON tasks(mode) WHERE mode = 'block' AND status = 'processing';"
    ),
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_TASKS_DDL)

    # 创建索引
    for idx_sql in _TASKS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
