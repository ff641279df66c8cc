"""FocusGuard Provider -- 文档供给抽象层

packages/provider 的公开接口导出。
"""

from .client import HttpDocumentProvisioner
from .config import ProvisionerConfig, load_provisioner_config
from .echo_adapter import EchoDocumentProvisioner
from .exceptions import ProvisionerUnreachableError, ProvisioningError
from .models import DocumentRef
from .protocols import DocumentProvisioner


def build_provisioner(config: ProvisionerConfig) -> DocumentProvisioner | None:
    """根据配置构建文档供给实例，disabled 模式返回 None"""
    if config.mode == "http":
        return HttpDocumentProvisioner(
            base_url=config.base_url,
            api_key=config.api_key.get_secret_value(),
            timeout_s=config.timeout_s,
        )
    if config.mode == "echo":
        return EchoDocumentProvisioner()
    return None


__all__ = [
    "DocumentRef",
    "DocumentProvisioner",
    "HttpDocumentProvisioner",
    "EchoDocumentProvisioner",
    "ProvisionerConfig",
    "load_provisioner_config",
    "build_provisioner",
    "ProvisioningError",
    "ProvisionerUnreachableError",
]
