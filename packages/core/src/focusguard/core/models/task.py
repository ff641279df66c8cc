"""Task Domain Model

tasks 表中的一行即一个 Task。
status / started_at / due_at（block 模式）只能由生命周期引擎和逾期扫描修改。
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..config import TASK_TITLE_MAX_LENGTH
from .enums import TaskMode, TaskStatus, TaskType


def to_utc(value: datetime | None) -> datetime | None:
    """统一转换为 UTC 时间；naive datetime 视为 UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Task(BaseModel):
    """Task 数据模型"""

    task_id: str = Field(description="唯一标识，ULID 格式")
    project_id: str | None = Field(default=None, description="所属项目标识（外部）")
    title: str = Field(description="任务标题")
    type: TaskType = Field(default=TaskType.REMINDER, description="任务类型")
    mode: TaskMode = Field(description="任务模式，创建后不可变")
    status: TaskStatus = Field(default=TaskStatus.ASSIGNED, description="当前状态")
    priority: int = Field(default=2, ge=1, le=3, description="优先级 1-3")
    reference_link: str | None = Field(default=None, description="参考链接")
    drive_link: str | None = Field(default=None, description="文档引用（原样保存）")
    duration_minutes: int | None = Field(
        default=None, gt=0, description="block 模式专注时长（分钟）"
    )
    due_at: datetime | None = Field(default=None, description="截止时间")
    started_at: datetime | None = Field(default=None, description="开始处理时间")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    @field_validator("due_at", "started_at", "created_at", "updated_at")
    @classmethod
    def _normalize_tz(cls, value: datetime | None) -> datetime | None:
        return to_utc(value)


class TaskCreate(BaseModel):
    """任务创建输入

    block 模式的 due_at 由 start 计算，创建时不允许携带。
    """

    project_id: str | None = Field(default=None, description="所属项目标识")
    title: str = Field(
        min_length=1, max_length=TASK_TITLE_MAX_LENGTH, description="任务标题"
    )
    type: TaskType = Field(description="任务类型")
    mode: TaskMode = Field(description="任务模式")
    priority: int = Field(default=2, ge=1, le=3, description="优先级 1-3")
    reference_link: str | None = Field(default=None, description="参考链接")
    duration_minutes: int | None = Field(
        default=None, gt=0, description="block 模式专注时长（分钟）"
    )
    due_at: datetime | None = Field(default=None, description="deadline 模式截止时间")

    @field_validator("due_at")
    @classmethod
    def _normalize_due_at(cls, value: datetime | None) -> datetime | None:
        return to_utc(value)

    @model_validator(mode="after")
    def _check_block_due_at(self) -> "TaskCreate":
        if self.mode == TaskMode.BLOCK and self.due_at is not None:
            raise ValueError("block 模式任务的 due_at 在 start 时计算，创建时不可指定")
        return self


class TaskUpdate(BaseModel):
    """任务编辑输入

    仅包含调用方可修改的字段；status / started_at 等由生命周期引擎维护，
    出现在请求中即视为非法。未出现的字段保持不变，显式 null 表示清空。
    """

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(
        default=None, min_length=1, max_length=TASK_TITLE_MAX_LENGTH
    )
    priority: int | None = Field(default=None, ge=1, le=3)
    reference_link: str | None = None
    duration_minutes: int | None = Field(default=None, gt=0)
    due_at: datetime | None = None

    @field_validator("due_at")
    @classmethod
    def _normalize_due_at(cls, value: datetime | None) -> datetime | None:
        return to_utc(value)

    @model_validator(mode="after")
    def _check_required_columns(self) -> "TaskUpdate":
        for name in ("title", "priority"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} 不能为 null")
        return self

    def changes(self) -> dict[str, object]:
        """本次请求实际携带的字段"""
        return {name: getattr(self, name) for name in self.model_fields_set}
