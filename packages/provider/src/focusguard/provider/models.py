"""Provisioning 数据模型"""

from pydantic import BaseModel, Field


class DocumentRef(BaseModel):
    """文档供给结果

    url 是不透明引用，原样存入 Task.drive_link，核心层不解析。
    """

    url: str = Field(description="文档引用 URL")
    provider: str = Field(description="供给方标识，如 echo / http")
    document_id: str | None = Field(default=None, description="供给方内部文档 ID")
    duration_ms: int = Field(default=0, ge=0, description="调用耗时（毫秒）")
