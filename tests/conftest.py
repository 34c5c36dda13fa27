"""
Pytest配置和通用测试夹具（fixtures）

该模块定义全局pytest配置和可重用的测试夹具（fixtures），
用于整个 Echo Macro 项目的测试。
"""

import subprocess

import pytest
from unittest.mock import AsyncMock, MagicMock

from echo_macro.config.loader import BUILTIN_DEFAULTS, Config
from echo_macro_shared.data_models import ActionEvent, EnvironmentState


@pytest.fixture
def native_state():
    """原生环境快照"""
    return EnvironmentState(isolated=False)


@pytest.fixture
def isolated_state():
    """Flatpak 沙箱环境快照"""
    return EnvironmentState(isolated=True, has_identity_marker=True, has_marker_file=True)


@pytest.fixture
def default_config():
    """只包含内置默认值的配置，不读取磁盘"""
    return Config(config_data={section: dict(values) for section, values in BUILTIN_DEFAULTS.items()})


@pytest.fixture
def completed_process():
    """
    返回一个构造 subprocess.CompletedProcess 的函数

    与 capture_output=True 的行为一致，stdout/stderr 为字节串
    """
    def _make(returncode=0, stderr=b"", stdout=b""):
        return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)

    return _make


@pytest.fixture
def mock_outbound():
    """模拟 OpenDeck 出站通道，show_alert 默认发送成功"""
    outbound = MagicMock()
    outbound.show_alert = AsyncMock(return_value=True)
    return outbound


@pytest.fixture
def key_down_event():
    """返回一个构造 keyDown 事件的函数"""
    def _make(settings=None, context="ctx-1"):
        return ActionEvent.model_validate({
            "event": "keyDown",
            "action": "net.ashurtech.echo-macro.type",
            "context": context,
            "device": "device-1",
            "payload": {
                "settings": settings if settings is not None else {},
                "coordinates": {"column": 0, "row": 0},
                "isInMultiAction": False,
            },
        })

    return _make
