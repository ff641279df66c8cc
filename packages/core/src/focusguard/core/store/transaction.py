"""写事务封装 -- 全局 block 槽位互斥的并发控制

所有写操作经 write_transaction 串行化：
1. 进程内：StoreGroup 共享的 asyncio.Lock 保证同一连接上事务不交错
2. 跨进程：BEGIN IMMEDIATE 在读取计数之前即持有 SQLite RESERVED 锁
3. 兜底：idx_tasks_active_block 部分唯一索引在写入时拒绝第二个活跃 block 任务

截止时间覆盖"取锁 + BEGIN + 事务体"，不覆盖 COMMIT：一旦开始提交，
结果即以提交为准。aiosqlite 在单个工作线程上按序执行语句，被取消的
await 不会撤回已排队的 BEGIN，因此超时后仍需在 BEGIN 落定后回滚，
回滚完成前不释放写锁。
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite
import structlog

from .sqlite_init import ACTIVE_BLOCK_INDEX

log = structlog.get_logger()

# 后台回滚任务的强引用，防止被 GC 回收
_pending_cleanups: set[asyncio.Task] = set()


async def _rollback_and_release(conn: aiosqlite.Connection, lock: asyncio.Lock) -> None:
    try:
        await conn.rollback()
    finally:
        lock.release()


async def _settle_then_rollback(
    begin: asyncio.Future,
    conn: aiosqlite.Connection,
    lock: asyncio.Lock,
) -> None:
    """等待被放弃的 BEGIN 落定，再回滚并释放写锁"""
    try:
        await begin
    except aiosqlite.Error as e:
        # BEGIN 最终失败（如 busy_timeout 到期）时没有需要回滚的事务
        log.info("abandoned_begin_failed", error_type=type(e).__name__)
    await _rollback_and_release(conn, lock)
    log.info("abandoned_begin_rolled_back")


def _schedule_cleanup(
    begin: asyncio.Future,
    conn: aiosqlite.Connection,
    lock: asyncio.Lock,
) -> None:
    task = asyncio.create_task(_settle_then_rollback(begin, conn, lock))
    _pending_cleanups.add(task)
    task.add_done_callback(_pending_cleanups.discard)
    log.warning("transaction_begin_abandoned")


@asynccontextmanager
async def write_transaction(
    conn: aiosqlite.Connection,
    lock: asyncio.Lock,
    timeout_s: float | None = None,
) -> AsyncIterator[aiosqlite.Connection]:
    """在同一 SQLite 事务内执行"检查 + 写入"，成功提交、异常回滚

    Args:
        conn: 数据库连接（需在同一连接上操作以保证事务性）
        lock: 串行化写事务的进程内锁
        timeout_s: 取锁、BEGIN 与事务体的总截止时间，None 表示不限

    Raises:
        TimeoutError: 截止时间内未完成
        Exception: 事务体内的任何异常在回滚后原样抛出
    """
    deadline = None
    if timeout_s is not None:
        deadline = asyncio.get_running_loop().time() + timeout_s

    async with asyncio.timeout_at(deadline):
        await lock.acquire()

    begin = asyncio.ensure_future(conn.execute("BEGIN IMMEDIATE"))
    try:
        async with asyncio.timeout_at(deadline):
            await asyncio.shield(begin)
            yield conn
    except BaseException:
        if begin.done():
            await _rollback_and_release(conn, lock)
        else:
            # BEGIN 仍在等待 SQLite 写锁：调用方立即得到异常，连接由后台清理
            _schedule_cleanup(begin, conn, lock)
        raise

    try:
        await conn.commit()
    except BaseException:
        await _rollback_and_release(conn, lock)
        raise
    lock.release()


def is_block_slot_conflict(error: Exception) -> bool:
    """判断 IntegrityError 是否由 block 槽位唯一索引触发"""
    if not isinstance(error, aiosqlite.IntegrityError):
        return False
    text = str(error)
    return ACTIVE_BLOCK_INDEX in text or "tasks.mode" in text
