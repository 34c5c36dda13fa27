"""
OpenDeck WebSocket 连接。

该模块提供一个异步WebSocket客户端，按 Stream Deck 插件协议向 OpenDeck 注册，
接收按键等动作事件，并发送 showAlert 请求。
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set

import websockets
from pydantic import ValidationError
from websockets.exceptions import ConnectionClosed, WebSocketException

from echo_macro_shared.data_models import ActionEvent, RegisterPlugin, ShowAlert

# 设置日志记录器
logger = logging.getLogger(__name__)

EventCallback = Callable[[ActionEvent], Awaitable[None]]


class OpenDeckConnection:
    """
    OpenDeck 连接类。

    负责建立WebSocket连接并注册插件，把收到的每个事件交给回调在独立任务中处理，
    以及向 OpenDeck 发送消息。
    """

    def __init__(self):
        """初始化连接。"""
        self.connection = None
        self.connected = False
        self.event_callback: Optional[EventCallback] = None
        self.disconnect_callback: Optional[Callable[[], None]] = None

        # 正在处理的事件任务，防止被垃圾回收
        self._event_tasks: Set[asyncio.Task] = set()

    async def connect(self, port: int, register_event: str, plugin_uuid: str) -> bool:
        """
        连接到 OpenDeck 并注册插件。

        Args:
            port: OpenDeck 启动插件时传入的端口
            register_event: 注册事件名（通常为 registerPlugin）
            plugin_uuid: OpenDeck 分配的插件UUID

        Returns:
            bool: 连接并注册是否成功
        """
        url = f"ws://localhost:{port}"
        try:
            logger.info(f"正在连接到 OpenDeck: {url}")
            self.connection = await websockets.connect(url, ping_interval=None)
            self.connected = True

            registration = RegisterPlugin(event=register_event, uuid=plugin_uuid)
            await self.connection.send(registration.model_dump_json())
            logger.info("插件已注册")
            return True
        except (OSError, WebSocketException) as e:
            logger.error(f"连接到 OpenDeck 失败: {str(e)}")
            self.connected = False
            return False

    async def disconnect(self) -> None:
        """断开与 OpenDeck 的连接。"""
        try:
            if self.connection:
                await self.connection.close()
                logger.info("WebSocket连接已关闭")
        except (OSError, WebSocketException) as e:
            logger.error(f"断开连接时出错: {str(e)}")
        finally:
            self.connected = False

    def register_callbacks(self,
                           event_callback: Optional[EventCallback] = None,
                           disconnect_callback: Optional[Callable[[], None]] = None) -> None:
        """
        注册回调函数。

        Args:
            event_callback: 处理动作事件的协程函数
            disconnect_callback: 处理连接断开的回调函数
        """
        self.event_callback = event_callback
        self.disconnect_callback = disconnect_callback

    async def send_json(self, data: Dict[str, Any]) -> bool:
        """
        发送JSON消息。

        Args:
            data: 要发送的消息

        Returns:
            bool: 发送是否成功
        """
        if not self.connected or not self.connection:
            logger.warning("尝试发送消息但未连接到 OpenDeck")
            return False

        try:
            await self.connection.send(json.dumps(data))
            return True
        except ConnectionClosed as cc:
            logger.error(f"发送消息时WebSocket连接已关闭: {cc}")
            self._mark_disconnected()
            return False
        except (OSError, WebSocketException) as e:
            logger.error(f"发送消息失败: {str(e)}")
            return False

    async def show_alert(self, context: str) -> bool:
        """
        请求 OpenDeck 在按键上显示警告标志。

        Args:
            context: 动作实例的上下文标识

        Returns:
            bool: 请求是否发送成功
        """
        return await self.send_json(ShowAlert(context=context).model_dump())

    async def listen(self) -> None:
        """
        监听并分发 OpenDeck 消息，直到连接关闭。

        每个事件在独立任务中处理，一个按键的键入不会阻塞其他事件。
        """
        if not self.connected or not self.connection:
            logger.error("未连接到 OpenDeck，无法监听消息")
            return

        try:
            logger.info("开始监听 OpenDeck 消息")
            async for message in self.connection:
                event = self._parse_message(message)
                if event is None:
                    continue

                if self.event_callback is None:
                    logger.debug(f"未注册事件回调，忽略事件: {event.event}")
                    continue

                task = asyncio.create_task(self.event_callback(event))
                self._event_tasks.add(task)
                task.add_done_callback(self._on_event_done)

        except ConnectionClosed as cc:
            logger.info(f"WebSocket连接已关闭: {str(cc)}")
        finally:
            self._mark_disconnected()

    def is_connected(self) -> bool:
        """检查是否已连接到 OpenDeck。"""
        return self.connected

    def _parse_message(self, message) -> Optional[ActionEvent]:
        """把一条WebSocket消息解析为动作事件，无法解析时返回 None。"""
        if isinstance(message, bytes):
            logger.warning("收到二进制消息，当前不支持处理")
            return None

        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            # 消息中可能包含按键文本，只记录长度
            logger.warning(f"收到无效的JSON消息，长度: {len(message)}")
            return None

        try:
            return ActionEvent.model_validate(data)
        except ValidationError as e:
            logger.warning(f"无法识别的消息: {e.error_count()} 个字段错误")
            return None

    def _on_event_done(self, task: asyncio.Task) -> None:
        self._event_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"处理事件时出错: {error}")

    def _mark_disconnected(self) -> None:
        was_connected = self.connected
        self.connected = False
        if was_connected and self.disconnect_callback:
            self.disconnect_callback()
