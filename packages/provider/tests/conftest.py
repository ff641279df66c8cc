"""Provider 包测试 fixtures"""

import pytest


@pytest.fixture
def clean_docs_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """清除 FOCUSGUARD_DOCS_* 环境变量，避免宿主环境干扰"""
    for name in (
        "FOCUSGUARD_DOCS_MODE",
        "FOCUSGUARD_DOCS_BASE_URL",
        "FOCUSGUARD_DOCS_API_KEY",
        "FOCUSGUARD_DOCS_TIMEOUT_S",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
