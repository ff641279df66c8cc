"""ProvisionerConfig -- 文档供给配置加载

从环境变量加载配置，不硬编码服务地址。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()


class ProvisionerConfig(BaseModel):
    """文档供给配置 -- 从环境变量加载

    环境变量:
        FOCUSGUARD_DOCS_MODE: 运行模式（echo/http/disabled）
        FOCUSGUARD_DOCS_BASE_URL: 文档服务地址
        FOCUSGUARD_DOCS_API_KEY: 文档服务访问密钥
        FOCUSGUARD_DOCS_TIMEOUT_S: 调用超时（秒，默认 10）
    """

    mode: Literal["echo", "http", "disabled"] = Field(
        default="echo",
        description="文档供给模式：echo / http / disabled",
    )
    base_url: str = Field(
        default="http://localhost:8700",
        description="文档服务基础 URL",
    )
    api_key: SecretStr = Field(
        default=SecretStr(""),
        description="文档服务访问密钥",
    )
    timeout_s: int = Field(
        default=10,
        ge=1,
        description="调用超时（秒）",
    )


def load_provisioner_config() -> ProvisionerConfig:
    """从环境变量加载文档供给配置

    Returns:
        ProvisionerConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("FOCUSGUARD_DOCS_MODE"):
        kwargs["mode"] = val

    if val := os.environ.get("FOCUSGUARD_DOCS_BASE_URL"):
        kwargs["base_url"] = val

    if val := os.environ.get("FOCUSGUARD_DOCS_API_KEY"):
        kwargs["api_key"] = SecretStr(val)

    if val := os.environ.get("FOCUSGUARD_DOCS_TIMEOUT_S"):
        try:
            kwargs["timeout_s"] = int(val)
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="FOCUSGUARD_DOCS_TIMEOUT_S",
                value=val,
                fallback=10,
            )
            # 使用默认值，不阻塞启动

    return ProvisionerConfig(**kwargs)
