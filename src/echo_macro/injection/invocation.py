"""
调用构建器。

根据环境快照和待键入文本，生成到达宿主机输入注入工具所需的具体命令。
"""

from typing import List, Optional, Sequence

from echo_macro_shared.constants import (
    INJECTION_PROBE_SUBCOMMAND,
    INJECTION_TOOL,
    INJECTION_TYPE_SUBCOMMAND,
    SANDBOX_BROKER,
    SANDBOX_BROKER_ARGS,
)
from echo_macro_shared.data_models import EnvironmentState, Invocation


class InvocationBuilder:
    """
    构建 ydotool 调用。

    沙箱中：flatpak-spawn --host ydotool type <text>
    原生：  ydotool type <text>

    文本始终作为单个参数传递，不拆分、不经过 shell 解释。
    ydotool 一次性键入整段文本，不支持逐字符延迟。
    """

    def __init__(
        self,
        tool: str = INJECTION_TOOL,
        broker: str = SANDBOX_BROKER,
        broker_args: Optional[Sequence[str]] = None,
    ):
        """
        初始化调用构建器。

        Args:
            tool: 输入注入工具名
            broker: 沙箱逃逸代理命令
            broker_args: 代理命令的参数，默认 ["--host"]
        """
        self.tool = tool
        self.broker = broker
        self.broker_args: List[str] = list(
            SANDBOX_BROKER_ARGS if broker_args is None else broker_args
        )

    def build(self, state: EnvironmentState, payload: str) -> Invocation:
        """
        构建键入文本的调用。

        Args:
            state: 环境快照
            payload: 待键入文本，不能为空

        Returns:
            Invocation: 要执行的命令

        Raises:
            ValueError: 文本为空
        """
        if not payload:
            raise ValueError("payload must be a non-empty string")
        return self._wrap(state, [INJECTION_TYPE_SUBCOMMAND, payload])

    def build_probe(self, state: EnvironmentState) -> Invocation:
        """构建检查工具是否可用的调用（ydotool help）。"""
        return self._wrap(state, [INJECTION_PROBE_SUBCOMMAND])

    def _wrap(self, state: EnvironmentState, tool_args: List[str]) -> Invocation:
        if state.isolated:
            return Invocation(
                program=self.broker,
                arguments=[*self.broker_args, self.tool, *tool_args],
            )
        return Invocation(program=self.tool, arguments=tool_args)
