"""CLI 入口模块 -- python -m focusguard.core <command>

支持的命令：
  init-db        初始化 SQLite 数据库
  sweep-overdue  执行一次逾期扫描并输出被标记为 expired 的任务
"""

import asyncio
import sys

from .config import get_db_path
from .log_config import setup_logging

_USAGE = """用法: python -m focusguard.core <command>
命令:
  init-db        初始化 SQLite 数据库
  sweep-overdue  执行一次逾期扫描"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]
    setup_logging(service="focusguard-cli")

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "sweep-overdue":
        exit_code = asyncio.run(run_sweep())
        sys.exit(exit_code)
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, sweep-overdue")
        sys.exit(1)


async def init_database() -> None:
    """创建数据库文件与表结构"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")
    store_group = await create_store_group(db_path)
    await store_group.conn.close()
    print("初始化完成")


async def run_sweep() -> int:
    """执行一次逾期扫描，返回进程退出码"""
    from .exceptions import StoreError
    from .store import create_store_group
    from .sweeper import OverdueSweeper

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    try:
        expired = await OverdueSweeper(store_group).sweep()
    except StoreError as e:
        print(f"扫描失败: {e}")
        return 2
    finally:
        await store_group.conn.close()

    print(f"扫描完成，{len(expired)} 个任务已标记为 expired")
    for task in expired:
        print(f"  {task.task_id}  {task.title}")
    return 0


if __name__ == "__main__":
    main()
