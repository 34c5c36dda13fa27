"""
文本注入器基类和工厂函数。

提供抽象基类定义标准接口，工厂函数根据环境快照和配置返回注入器实例。
"""

import abc
import logging
import platform
from typing import TYPE_CHECKING, Optional

from echo_macro_shared.constants import (
    HOST_APP_ID,
    INJECTION_TOOL,
    SANDBOX_BROKER,
    SANDBOX_BROKER_ARGS,
)
from echo_macro_shared.data_models import EnvironmentState

if TYPE_CHECKING:
    from echo_macro.config.loader import Config

# 设置日志记录器
logger = logging.getLogger(__name__)


class BaseInjector(abc.ABC):
    """
    文本注入器抽象基类。

    定义所有文本注入器实现必须提供的接口。
    """

    @abc.abstractmethod
    def inject_text(self, text: str) -> bool:
        """
        将文本注入到当前激活的应用程序或窗口。

        Args:
            text: 要注入的文本

        Returns:
            bool: 注入是否成功
        """

    @abc.abstractmethod
    async def inject_text_async(self, text: str) -> bool:
        """
        在不阻塞事件循环的前提下注入文本。

        Args:
            text: 要注入的文本

        Returns:
            bool: 注入是否成功
        """

    def check_available(self) -> bool:
        """检查注入器依赖的外部工具是否可用。"""
        return True


def get_injector(
    state: EnvironmentState, config: Optional["Config"] = None
) -> Optional[BaseInjector]:
    """
    工厂函数，返回适合当前平台的文本注入器实例。

    Args:
        state: 进程启动时计算的环境快照
        config: 可选的配置访问器，提供工具名、代理命令等

    Returns:
        BaseInjector: 文本注入器实例，如果平台不支持则返回None
    """
    os_name = platform.system().lower()

    if os_name != "linux":
        logger.warning(f"平台 '{os_name}' 目前不支持文本注入")
        return None

    from .injector_ydotool import YdotoolInjector

    if config is None:
        return YdotoolInjector(state)

    injection = config.injection()
    tool = injection.get("tool", INJECTION_TOOL)
    logger.info(f"使用 {tool} 文本注入器")
    return YdotoolInjector(
        state,
        tool=tool,
        broker=injection.get("broker", SANDBOX_BROKER),
        broker_args=config.get_list("Injection", "broker_args", SANDBOX_BROKER_ARGS, delimiter=" "),
        host_app_id=injection.get("host_app_id", HOST_APP_ID),
    )
