"""
Echo Macro 插件核心逻辑。

按下 OpenDeck / Stream Deck 按键时键入预先配置的文本。该模块包括：
- 动作事件处理（keyDown、keyUp、willAppear、willDisappear、didReceiveSettings）
- 插件就绪时的工具可用性检查
- 连接生命周期管理
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

from echo_macro_shared.constants import (
    DEFAULT_FALLBACK_TEXT,
    EVENT_DID_RECEIVE_SETTINGS,
    EVENT_KEY_DOWN,
    EVENT_KEY_UP,
    EVENT_WILL_APPEAR,
    EVENT_WILL_DISAPPEAR,
)
from echo_macro_shared.data_models import ActionEvent, EnvironmentState, TypeTextSettings

from .config.loader import Config
from .injection.injector_base import BaseInjector, get_injector
from .injection.redactor import redact
from .network.client import OpenDeckConnection

# 设置日志记录器
logger = logging.getLogger(__name__)

EventHandler = Callable[[ActionEvent, OpenDeckConnection], Awaitable[None]]


class EchoMacroAction:
    """
    "键入文本"动作的事件处理器。
    """

    def __init__(self, injector: Optional[BaseInjector], fallback_text: str = DEFAULT_FALLBACK_TEXT):
        """
        初始化动作处理器。

        Args:
            injector: 文本注入器，平台不支持时为 None
            fallback_text: 按键未配置文本时键入的内容
        """
        self.injector = injector
        self.fallback_text = fallback_text

    async def key_down(self, event: ActionEvent, outbound: OpenDeckConnection) -> None:
        """按键按下：键入文本，失败时在按键上显示警告标志。"""
        settings = TypeTextSettings.from_payload(event.payload.settings)
        logger.info("按键按下")
        logger.debug(f"配置: text={redact(settings.text)}, delay_ms={settings.delay_ms}")

        if await self.type_text(settings):
            return

        # 警告标志只是附加提示，发送失败记录后继续
        try:
            if not await outbound.show_alert(event.context):
                logger.error("显示警告标志失败")
        except Exception as e:
            logger.error(f"显示警告标志失败: {e}")

    async def key_up(self, event: ActionEvent, outbound: OpenDeckConnection) -> None:
        pass

    async def will_appear(self, event: ActionEvent, outbound: OpenDeckConnection) -> None:
        logger.info(f"动作已出现: {event.context}")

    async def will_disappear(self, event: ActionEvent, outbound: OpenDeckConnection) -> None:
        logger.info(f"动作已消失: {event.context}")

    async def did_receive_settings(self, event: ActionEvent, outbound: OpenDeckConnection) -> None:
        logger.debug(f"收到新配置: {event.context}")

    async def type_text(self, settings: TypeTextSettings) -> bool:
        """
        键入配置的文本。

        Args:
            settings: 按键配置

        Returns:
            bool: 键入是否成功
        """
        if self.injector is None:
            logger.error("文本注入器不可用")
            return False

        if settings.delay_ms:
            logger.debug("ydotool 一次性键入整段文本，忽略 delay_ms")

        text = settings.resolve_text(self.fallback_text)
        return await self.injector.inject_text_async(text)


class EchoMacroPlugin:
    """
    Echo Macro 插件主类。

    整合环境快照、配置、文本注入器和 OpenDeck 连接。
    """

    def __init__(
        self,
        state: EnvironmentState,
        config: Optional[Config] = None,
        injector: Optional[BaseInjector] = None,
        connection: Optional[OpenDeckConnection] = None,
    ):
        """
        初始化插件。

        Args:
            state: 进程启动时计算的环境快照
            config: 配置访问器
            injector: 可选的文本注入器，默认由 get_injector 创建
            connection: 可选的 OpenDeck 连接
        """
        self.state = state
        self.config = config or Config()
        self.injector = injector or get_injector(state, self.config)
        self.action = EchoMacroAction(self.injector, self.config.fallback_text())
        self.connection = connection or OpenDeckConnection()

        self._handlers: Dict[str, EventHandler] = {
            EVENT_KEY_DOWN: self.action.key_down,
            EVENT_KEY_UP: self.action.key_up,
            EVENT_WILL_APPEAR: self.action.will_appear,
            EVENT_WILL_DISAPPEAR: self.action.will_disappear,
            EVENT_DID_RECEIVE_SETTINGS: self.action.did_receive_settings,
        }

        self._shutdown_event = asyncio.Event()

    async def handle_event(self, event: ActionEvent) -> None:
        """把事件分发给对应的处理器。"""
        handler = self._handlers.get(event.event)
        if handler is None:
            logger.debug(f"忽略事件: {event.event}")
            return
        await handler(event, self.connection)

    async def plugin_ready(self) -> None:
        """插件连接成功后记录运行模式，并按配置检查 ydotool 是否可用。"""
        if self.state.isolated:
            logger.info("Echo Macro 插件已连接，运行在 Flatpak 模式")
            logger.info("将通过 flatpak-spawn --host 调用 ydotool")
        else:
            logger.info("Echo Macro 插件已连接，运行在原生模式")
        logger.info("使用 ydotool 键入文本，兼容 Wayland/X11")

        if self.injector is None:
            logger.error("文本注入器不可用，按键将只显示警告标志")
            return

        if self.config.get_bool("Injection", "probe_on_start", True):
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self.injector.check_available)

    async def start(self, port: int, register_event: str, plugin_uuid: str) -> bool:
        """
        连接 OpenDeck 并完成就绪检查。

        Returns:
            bool: 启动是否成功
        """
        self.connection.register_callbacks(
            event_callback=self.handle_event,
            disconnect_callback=self._handle_disconnect,
        )
        if not await self.connection.connect(port, register_event, plugin_uuid):
            return False

        await self.plugin_ready()
        return True

    async def run(self) -> None:
        """监听事件直到连接关闭或收到停止请求。"""
        listen_task = asyncio.create_task(self.connection.listen())
        shutdown_task = asyncio.create_task(self._shutdown_event.wait())

        done, pending = await asyncio.wait(
            {listen_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.debug("任务已取消")

    async def stop(self) -> None:
        """停止插件。"""
        self._shutdown_event.set()
        await self.connection.disconnect()
        logger.info("插件正在关闭")

    def _handle_disconnect(self) -> None:
        logger.warning("与 OpenDeck 的连接已断开")
        self._shutdown_event.set()
