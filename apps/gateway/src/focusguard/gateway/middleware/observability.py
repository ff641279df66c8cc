"""Gateway 可观测性初始化

日志走 focusguard.core.log_config（service=focusguard-gateway）；请求日志由
LoggingMiddleware 输出，uvicorn 自带的 access log 压到 WARNING。
LOGFIRE_SEND_TO_LOGFIRE=true 时额外启用 Logfire，失败降级为纯本地日志。
"""

import os

import structlog
from fastapi import FastAPI
from focusguard.core.log_config import setup_logging

SERVICE_NAME = "focusguard-gateway"


def configure_observability(app: FastAPI) -> None:
    setup_logging(service=SERVICE_NAME, quiet_loggers=["uvicorn.access"])
    setup_logfire(app)


def setup_logfire(app: FastAPI) -> bool:
    """按环境变量启用 Logfire 并挂载 FastAPI instrumentation

    Returns:
        True 如果 Logfire 已启用
    """
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return False
    try:
        import logfire

        logfire.configure(service_name=SERVICE_NAME)
        logfire.instrument_fastapi(app)
    except Exception as e:
        structlog.get_logger().warning(
            "logfire_init_failed",
            error_type=type(e).__name__,
            message="Logfire 初始化失败，降级为纯本地日志",
        )
        return False
    return True
