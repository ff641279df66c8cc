"""错误响应 -- 领域异常到 HTTP 响应的映射

响应体统一为 {"error": {"code": ..., "message": ...}}。
"""

from focusguard.core.exceptions import (
    BlockSlotConflictError,
    InvalidTaskUpdateError,
    InvalidTransitionError,
    StoreError,
    TaskLifecycleError,
    TaskNotFoundError,
)
from starlette.responses import JSONResponse

_STATUS_CODES: dict[type[TaskLifecycleError], int] = {
    TaskNotFoundError: 404,
    InvalidTransitionError: 409,
    BlockSlotConflictError: 409,
    InvalidTaskUpdateError: 409,
    StoreError: 503,
}


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    """构建统一格式的错误响应"""
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


def lifecycle_error_response(error: TaskLifecycleError) -> JSONResponse:
    """将生命周期异常转换为 HTTP 响应"""
    status_code = _STATUS_CODES.get(type(error), 500)
    return error_response(status_code, error.code, error.message)
