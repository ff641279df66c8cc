"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、存储超时、逾期轮询间隔等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("FOCUSGUARD_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "FOCUSGUARD_DB_PATH",
        str(_get_base_dir() / "sqlite" / "focusguard.db"),
    )


def get_store_timeout_s() -> float:
    """单次存储操作的超时时间（秒），超时以 StoreError 上报"""
    return float(os.environ.get("FOCUSGUARD_STORE_TIMEOUT_S", "5"))


def get_overdue_poll_interval_s() -> float:
    """逾期扫描轮询间隔（秒），0 表示不启动后台轮询"""
    return float(os.environ.get("FOCUSGUARD_OVERDUE_POLL_INTERVAL_S", "60"))


# block 模式未设置 duration_minutes 时的默认专注时长（分钟）
DEFAULT_BLOCK_DURATION_MINUTES: int = 25

# 任务标题最大长度
TASK_TITLE_MAX_LENGTH: int = 200

# SSE 心跳间隔（秒）
SSE_HEARTBEAT_INTERVAL: int = int(
    os.environ.get("FOCUSGUARD_SSE_HEARTBEAT_INTERVAL", "15")
)
