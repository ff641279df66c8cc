"""structlog 配置 -- gateway 与 CLI 共用

FOCUSGUARD_LOG_FORMAT: "dev"（默认，可读输出）或 "json"（结构化输出）
FOCUSGUARD_LOG_LEVEL: 根 logger 级别，默认 INFO

每条日志带 service 字段区分进程来源（focusguard-gateway / focusguard-cli）。
aiosqlite 每条语句都会打 DEBUG 日志，非 DEBUG 级别下压到 WARNING。
"""

import logging
import os
from collections.abc import Iterable

import structlog

# 重复调用时只替换本模块安装的 handler，保留其他 handler
_HANDLER_NAME = "focusguard"

_NOISY_LOGGERS = ("aiosqlite",)


def _add_service(service: str) -> structlog.types.Processor:
    def processor(logger, method_name, event_dict):
        event_dict.setdefault("service", service)
        return event_dict

    return processor


def setup_logging(service: str, quiet_loggers: Iterable[str] = ()) -> None:
    """初始化 structlog + 标准库 logging

    Args:
        service: 写入每条日志的 service 字段
        quiet_loggers: 额外需要压到 WARNING 的第三方 logger
    """
    log_format = os.environ.get("FOCUSGUARD_LOG_FORMAT", "dev")
    level_name = os.environ.get("FOCUSGUARD_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _add_service(service),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    render_chain: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if log_format == "json":
        render_chain += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        render_chain.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=render_chain,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    noisy_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in (*_NOISY_LOGGERS, *quiet_loggers):
        logging.getLogger(name).setLevel(noisy_level)
