"""HttpDocumentProvisioner -- 文档服务 HTTP 调用封装

POST {base_url}/documents {"title", "folder_id"} -> {"url", "document_id"}
"""

import time

import httpx
import structlog

from .exceptions import ProvisionerUnreachableError, ProvisioningError
from .models import DocumentRef

log = structlog.get_logger()

# 健康检查超时（硬编码，应快速响应）
HEALTH_CHECK_TIMEOUT_S = 5

# 连接类异常类型集合（转换为 ProvisionerUnreachableError）
_CONNECTION_ERROR_TYPES = (
    ConnectionError,
    OSError,
    TimeoutError,
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.TimeoutException,
)


class HttpDocumentProvisioner:
    """文档服务 HTTP 客户端"""

    def __init__(
        self,
        base_url: str = "http://localhost:8700",
        api_key: str = "",
        timeout_s: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """初始化文档服务客户端

        Args:
            base_url: 服务基础 URL
            api_key: 访问密钥（Bearer）
            timeout_s: 请求超时（秒）
            transport: 自定义 httpx transport（测试注入）
        """
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout_s = timeout_s
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        headers = {}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=timeout,
            transport=self._transport,
        )

    async def create_document(
        self,
        title: str,
        folder_id: str | None = None,
    ) -> DocumentRef:
        """创建文档

        Raises:
            ProvisionerUnreachableError: 服务连接失败或超时
            ProvisioningError: 服务返回错误或响应缺少 url
        """
        start_time = time.monotonic()
        try:
            async with self._client(self._timeout_s) as http_client:
                resp = await http_client.post(
                    "/documents",
                    json={"title": title, "folder_id": folder_id},
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            log.error(
                "document_provision_failed",
                status_code=e.response.status_code,
                title=title,
            )
            raise ProvisioningError(
                f"文档服务返回错误: HTTP {e.response.status_code}",
                recoverable=e.response.status_code >= 500,
            ) from e
        except _CONNECTION_ERROR_TYPES as e:
            log.error(
                "document_provision_unreachable",
                base_url=self._base_url,
                error_type=type(e).__name__,
            )
            raise ProvisionerUnreachableError(self._base_url, e) from e
        except httpx.HTTPError as e:
            # 其余传输层错误（连接中断、协议错误等）
            log.error(
                "document_provision_failed",
                error_type=type(e).__name__,
                title=title,
            )
            raise ProvisioningError(f"文档服务调用失败: {e}") from e
        except ValueError as e:
            raise ProvisioningError(f"文档服务响应无法解析: {e}") from e

        url = data.get("url") if isinstance(data, dict) else None
        if not url:
            raise ProvisioningError("文档服务响应缺少 url", recoverable=False)

        duration_ms = int((time.monotonic() - start_time) * 1000)
        log.info(
            "document_provisioned",
            provider="http",
            duration_ms=duration_ms,
        )
        return DocumentRef(
            url=url,
            provider="http",
            document_id=data.get("document_id"),
            duration_ms=duration_ms,
        )

    async def health_check(self) -> bool:
        """检查文档服务可达性

        发送 GET {base_url}/health 请求。

        注意: 此方法不抛出异常，所有异常内部捕获并返回 False。
        """
        try:
            async with self._client(HEALTH_CHECK_TIMEOUT_S) as http_client:
                resp = await http_client.get("/health")
                return resp.status_code == 200
        except Exception as e:
            log.debug("health_check_failed", base_url=self._base_url, error=str(e))
            return False
