"""Provisioning 异常体系"""


class ProvisioningError(Exception):
    """文档供给基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class ProvisionerUnreachableError(ProvisioningError):
    """文档服务不可达（连接失败、超时、DNS 解析失败等）"""

    def __init__(self, base_url: str, original_error: Exception) -> None:
        """
        Args:
            base_url: 尝试连接的服务地址
            original_error: 原始异常
        """
        super().__init__(
            f"文档服务不可达: {base_url} -- {original_error}",
            recoverable=True,
        )
        self.base_url = base_url
        self.original_error = original_error
