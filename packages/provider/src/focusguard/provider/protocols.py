"""DocumentProvisioner Protocol 接口定义"""

from typing import Protocol

from .models import DocumentRef


class DocumentProvisioner(Protocol):
    """文档供给能力 -- 按标题创建文档，返回不透明引用"""

    async def create_document(
        self,
        title: str,
        folder_id: str | None = None,
    ) -> DocumentRef:
        """创建文档

        Raises:
            ProvisioningError: 供给失败
        """
        ...

    async def health_check(self) -> bool:
        """供给方是否可用（不抛异常）"""
        ...
