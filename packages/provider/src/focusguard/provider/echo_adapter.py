"""EchoDocumentProvisioner -- 本地回声供给

不访问任何外部服务，按标题生成确定性的 echo:// 引用。
用于开发环境与测试。
"""

import re
import time

from ulid import ULID

from .models import DocumentRef

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


class EchoDocumentProvisioner:
    """Echo 模式文档供给"""

    async def create_document(
        self,
        title: str,
        folder_id: str | None = None,
    ) -> DocumentRef:
        start_time = time.monotonic()
        document_id = str(ULID())
        slug = _SLUG_PATTERN.sub("-", title.lower()).strip("-") or "untitled"
        folder = folder_id or "root"
        return DocumentRef(
            url=f"echo://documents/{folder}/{slug}-{document_id}",
            provider="echo",
            document_id=document_id,
            duration_ms=int((time.monotonic() - start_time) * 1000),
        )

    async def health_check(self) -> bool:
        return True
