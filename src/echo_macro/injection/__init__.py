"""
文本注入模块。

在原生环境或 Flatpak 沙箱中通过宿主机的 ydotool 键入文本：
- 沙箱检测
- 调用构建
- 命令分发
- 失败诊断
- 日志脱敏
"""

from .diagnostics import DiagnosticClassifier
from .dispatcher import Dispatcher
from .injector_base import BaseInjector, get_injector
from .injector_ydotool import YdotoolInjector
from .invocation import InvocationBuilder
from .redactor import redact
from .sandbox_detector import SandboxDetector

__all__ = [
    "BaseInjector",
    "get_injector",
    "YdotoolInjector",
    "SandboxDetector",
    "InvocationBuilder",
    "Dispatcher",
    "DiagnosticClassifier",
    "redact",
]
