"""
测试入口参数解析和日志配置。
"""

import asyncio
import logging
import os
import signal

import pytest
from unittest.mock import AsyncMock, patch

from echo_macro import main as entry
from echo_macro.config.loader import Config
from echo_macro.injection.sandbox_detector import SandboxDetector
from echo_macro.main import parse_args, run, setup_logging
from echo_macro.network.client import OpenDeckConnection
from echo_macro.plugin import EchoMacroPlugin


STREAM_DECK_ARGS = [
    "-port", "28196",
    "-pluginUUID", "net.ashurtech.echo-macro",
    "-registerEvent", "registerPlugin",
    "-info", '{"application": {"platform": "linux"}}',
]


def test_parse_stream_deck_arguments():
    args = parse_args(STREAM_DECK_ARGS)

    assert args.port == 28196
    assert args.plugin_uuid == "net.ashurtech.echo-macro"
    assert args.register_event == "registerPlugin"
    assert args.debug is False
    assert args.config_file is None


def test_parse_extra_options():
    args = parse_args(STREAM_DECK_ARGS + ["--debug", "--log-file", "/tmp/echo.log", "--config-file", "/tmp/c.ini"])

    assert args.debug is True
    assert args.log_file == "/tmp/echo.log"
    assert args.config_file == "/tmp/c.ini"


def test_parse_missing_port():
    with pytest.raises(SystemExit):
        parse_args(["-pluginUUID", "x", "-registerEvent", "registerPlugin"])


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_level_from_config(restore_root_logger):
    args = parse_args(STREAM_DECK_ARGS)
    config = Config(config_data={"Plugin": {"log_level": "warning"}})

    with patch.dict("os.environ", {"ECHO_MACRO_DEBUG": "0"}):
        setup_logging(args, config)

    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_debug_flag(restore_root_logger):
    args = parse_args(STREAM_DECK_ARGS + ["--debug"])
    config = Config(config_data={"Plugin": {"log_level": "error"}})

    setup_logging(args, config)

    assert logging.getLogger().level == logging.DEBUG


def test_setup_logging_env_debug(restore_root_logger):
    args = parse_args(STREAM_DECK_ARGS)

    with patch.dict("os.environ", {"ECHO_MACRO_DEBUG": "true"}):
        setup_logging(args)

    assert logging.getLogger().level == logging.DEBUG


def test_setup_logging_file_handler(restore_root_logger, tmp_path):
    log_file = tmp_path / "echo.log"
    args = parse_args(STREAM_DECK_ARGS + ["--log-file", str(log_file)])

    setup_logging(args)
    logging.getLogger("echo_macro.test").warning("written to file")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "written to file" in log_file.read_text()


def test_parse_init_config_without_stream_deck_arguments():
    args = parse_args(["--init-config"])

    assert args.init_config is True
    assert args.port is None


def test_run_init_config_creates_user_config(restore_root_logger):
    with patch("echo_macro.main.create_default_user_config", return_value=True) as create:
        assert run(["--init-config"]) == 0

    create.assert_called_once_with()


def test_run_init_config_failure(restore_root_logger):
    with patch("echo_macro.main.create_default_user_config", return_value=False):
        assert run(["--init-config"]) == 1


@pytest.fixture
def quiet_config():
    """不在启动时检查 ydotool 的配置"""
    return Config(config_data={
        "Plugin": {"fallback_text": "Hello World"},
        "Injection": {"probe_on_start": "false"},
    })


@pytest.fixture
def capture_plugin():
    """记录 main() 创建的插件实例"""
    created = []

    def _build(*args, **kwargs):
        plugin = EchoMacroPlugin(*args, **kwargs)
        created.append(plugin)
        return plugin

    with patch("echo_macro.main.EchoMacroPlugin", side_effect=_build):
        yield created


class TestMain:
    """测试插件主函数"""

    @pytest.mark.asyncio
    async def test_environment_detected_once_and_shared(self, isolated_state, quiet_config, capture_plugin):
        with patch.object(SandboxDetector, "detect", return_value=isolated_state) as detect, \
             patch("echo_macro.injection.injector_base.platform.system", return_value="Linux"), \
             patch.object(OpenDeckConnection, "connect", AsyncMock(return_value=True)), \
             patch.object(OpenDeckConnection, "listen", AsyncMock(return_value=None)), \
             patch.object(OpenDeckConnection, "disconnect", AsyncMock()):
            code = await entry.main(parse_args(STREAM_DECK_ARGS), quiet_config)

        assert code == 0
        assert detect.call_count == 1

        plugin = capture_plugin[0]
        assert plugin.state is isolated_state
        assert plugin.injector.state is plugin.state

    @pytest.mark.asyncio
    async def test_connect_failure_returns_error(self, native_state, quiet_config, capture_plugin):
        with patch.object(SandboxDetector, "detect", return_value=native_state), \
             patch.object(OpenDeckConnection, "connect", AsyncMock(return_value=False)):
            code = await entry.main(parse_args(STREAM_DECK_ARGS), quiet_config)

        assert code == 1

    @pytest.mark.asyncio
    async def test_sigterm_stops_plugin(self, native_state, quiet_config, capture_plugin):
        async def _listen_until_signal():
            os.kill(os.getpid(), signal.SIGTERM)
            await asyncio.sleep(5)

        disconnect = AsyncMock()
        with patch.object(SandboxDetector, "detect", return_value=native_state), \
             patch.object(OpenDeckConnection, "connect", AsyncMock(return_value=True)), \
             patch.object(OpenDeckConnection, "listen", side_effect=_listen_until_signal), \
             patch.object(OpenDeckConnection, "disconnect", disconnect):
            code = await asyncio.wait_for(entry.main(parse_args(STREAM_DECK_ARGS), quiet_config), timeout=2)

        assert code == 0
        assert capture_plugin[0]._shutdown_event.is_set()
        disconnect.assert_awaited()


def test_help_names_plugin(capsys):
    with pytest.raises(SystemExit):
        parse_args(["--help"])

    out = capsys.readouterr().out
    assert "echo-macro" in out
    assert "net.ashurtech.echo-macro" in out
