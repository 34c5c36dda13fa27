"""
基于 ydotool 的文本注入器。

串联调用构建、命令分发和失败诊断：在原生环境直接调用 ydotool，
在 Flatpak 沙箱中通过 flatpak-spawn --host 调用宿主机上的 ydotool。
"""

import logging
from typing import Any, Dict, Optional, Sequence

from echo_macro_shared.constants import (
    HOST_APP_ID,
    INJECTION_TOOL,
    SANDBOX_BROKER,
)
from echo_macro_shared.data_models import DispatchOutcome, EnvironmentState, Invocation

from .diagnostics import DiagnosticClassifier
from .dispatcher import Dispatcher
from .injector_base import BaseInjector
from .invocation import InvocationBuilder
from .redactor import redact

logger = logging.getLogger(__name__)


class YdotoolInjector(BaseInjector):
    """
    ydotool 文本注入器。

    环境快照在构造时传入，之后所有调用构建和诊断都使用同一个值。
    """

    def __init__(
        self,
        state: EnvironmentState,
        tool: str = INJECTION_TOOL,
        broker: str = SANDBOX_BROKER,
        broker_args: Optional[Sequence[str]] = None,
        host_app_id: str = HOST_APP_ID,
        dispatcher: Optional[Dispatcher] = None,
    ):
        """
        初始化 ydotool 注入器。

        Args:
            state: 环境快照
            tool: 输入注入工具名
            broker: 沙箱逃逸代理命令
            broker_args: 代理命令参数
            host_app_id: 宿主应用的 Flatpak ID，用于权限提示
            dispatcher: 可选的分发器，默认新建
        """
        self.state = state
        self.builder = InvocationBuilder(tool=tool, broker=broker, broker_args=broker_args)
        self.dispatcher = dispatcher or Dispatcher()
        self.classifier = DiagnosticClassifier(tool=tool, broker=broker, host_app_id=host_app_id)

    def inject_text(self, text: str) -> bool:
        """
        使用 ydotool 键入文本（阻塞直到子进程结束）。

        Args:
            text: 要注入的文本，不能为空

        Returns:
            bool: 注入是否成功
        """
        invocation = self._prepare(text)
        outcome = self.dispatcher.dispatch(invocation)
        return self._finish(outcome)

    async def inject_text_async(self, text: str) -> bool:
        """
        使用 ydotool 键入文本，子进程在线程池中执行。

        Args:
            text: 要注入的文本，不能为空

        Returns:
            bool: 注入是否成功
        """
        invocation = self._prepare(text)
        outcome = await self.dispatcher.dispatch_async(invocation)
        return self._finish(outcome)

    def check_available(self) -> bool:
        """
        运行 ydotool help 检查工具是否可用，失败时记录诊断。

        Returns:
            bool: 工具是否可用
        """
        outcome = self.dispatcher.dispatch(self.builder.build_probe(self.state))
        if outcome.succeeded:
            logger.info(f"{self.builder.tool} 可用")
            return True

        logger.error(f"{self.builder.tool} 不可用")
        DiagnosticClassifier.log_report(self.classifier.classify(outcome, self.state))
        return False

    def get_status(self) -> Dict[str, Any]:
        """获取注入器状态信息。"""
        return {
            "mode": self.state.mode,
            "isolated": self.state.isolated,
            "tool": self.builder.tool,
            "broker": self.builder.broker if self.state.isolated else None,
        }

    def _prepare(self, text: str) -> Invocation:
        invocation = self.builder.build(self.state, text)
        logger.info(f"正在键入: {redact(text)}")
        return invocation

    def _finish(self, outcome: DispatchOutcome) -> bool:
        if outcome.succeeded:
            logger.info("文本键入完成")
            return True

        logger.error(f"文本键入失败 - {self.builder.tool} 错误")
        DiagnosticClassifier.log_report(self.classifier.classify(outcome, self.state))
        return False
