import asyncio
import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from websockets import ConnectionClosed

from echo_macro.network.client import OpenDeckConnection


class FakeWebSocket:
    """按顺序产出预设消息的WebSocket替身"""

    def __init__(self, messages):
        self._messages = list(messages)
        self.send = AsyncMock()
        self.close = AsyncMock()

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._messages:
            raise StopAsyncIteration
        return self._messages.pop(0)


@pytest.mark.asyncio
async def test_connect_registers_plugin():
    """测试连接后发送注册消息"""
    client = OpenDeckConnection()
    mock_ws = AsyncMock()

    with patch("echo_macro.network.client.websockets.connect", AsyncMock(return_value=mock_ws)) as mock_connect:
        result = await client.connect(28196, "registerPlugin", "uuid-1")

    assert result is True
    assert client.is_connected()
    assert mock_connect.call_args[0][0] == "ws://localhost:28196"
    sent = json.loads(mock_ws.send.call_args[0][0])
    assert sent == {"event": "registerPlugin", "uuid": "uuid-1"}


@pytest.mark.asyncio
async def test_connect_failure():
    """测试连接失败"""
    client = OpenDeckConnection()

    with patch("echo_macro.network.client.websockets.connect",
               AsyncMock(side_effect=ConnectionRefusedError("refused"))):
        result = await client.connect(1, "registerPlugin", "uuid-1")

    assert result is False
    assert not client.is_connected()


@pytest.mark.asyncio
async def test_disconnect():
    """测试断开连接功能"""
    client = OpenDeckConnection()
    mock_ws = AsyncMock()
    client.connection = mock_ws
    client.connected = True

    await client.disconnect()

    mock_ws.close.assert_called_once()
    assert not client.connected


@pytest.mark.asyncio
async def test_show_alert():
    """测试发送showAlert"""
    client = OpenDeckConnection()
    mock_ws = AsyncMock()
    client.connection = mock_ws
    client.connected = True

    result = await client.show_alert("ctx-1")

    assert result is True
    assert json.loads(mock_ws.send.call_args[0][0]) == {"event": "showAlert", "context": "ctx-1"}


@pytest.mark.asyncio
async def test_show_alert_not_connected():
    client = OpenDeckConnection()
    assert await client.show_alert("ctx-1") is False


@pytest.mark.asyncio
async def test_send_json_connection_closed():
    """测试发送JSON数据时连接关闭的情况"""
    client = OpenDeckConnection()
    mock_ws = AsyncMock()
    mock_ws.send.side_effect = ConnectionClosed(None, None)
    client.connection = mock_ws
    client.connected = True

    disconnect_called = False

    def disconnect_callback():
        nonlocal disconnect_called
        disconnect_called = True

    client.register_callbacks(disconnect_callback=disconnect_callback)

    result = await client.send_json({"event": "showAlert", "context": "x"})

    assert result is False
    assert not client.connected
    assert disconnect_called


@pytest.mark.asyncio
async def test_listen_dispatches_events():
    """测试每个事件交给回调处理，无效消息被跳过"""
    client = OpenDeckConnection()
    client.connection = FakeWebSocket([
        json.dumps({"event": "keyDown", "context": "a", "payload": {"settings": {"text": "hi"}}}),
        "not json",
        b"\x00\x01",
        json.dumps({"context": "no event field"}),
        json.dumps({"event": "willAppear", "context": "b"}),
    ])
    client.connected = True

    received = []

    async def on_event(event):
        received.append(event)

    disconnect_callback = MagicMock()
    client.register_callbacks(event_callback=on_event, disconnect_callback=disconnect_callback)

    await client.listen()
    # 等待事件任务完成
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert [e.event for e in received] == ["keyDown", "willAppear"]
    assert received[0].payload.settings == {"text": "hi"}
    assert not client.connected
    disconnect_callback.assert_called_once()


@pytest.mark.asyncio
async def test_listen_handler_error_does_not_stop_loop():
    """测试单个事件处理出错不影响后续事件"""
    client = OpenDeckConnection()
    client.connection = FakeWebSocket([
        json.dumps({"event": "keyDown", "context": "a"}),
        json.dumps({"event": "keyDown", "context": "b"}),
    ])
    client.connected = True

    handled = []

    async def on_event(event):
        if event.context == "a":
            raise RuntimeError("boom")
        handled.append(event.context)

    client.register_callbacks(event_callback=on_event)

    await client.listen()
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert handled == ["b"]


@pytest.mark.asyncio
async def test_listen_not_connected():
    client = OpenDeckConnection()
    await client.listen()
    assert not client.connected
