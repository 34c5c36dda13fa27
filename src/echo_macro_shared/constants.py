"""
Echo Macro shared constants.

This module contains constants used throughout the Echo Macro plugin.
"""

# Plugin metadata
PLUGIN_NAME = "echo-macro"
PLUGIN_UUID = "net.ashurtech.echo-macro"
PLUGIN_VERSION = "0.1.0"

# 未配置文本时键入的默认内容
DEFAULT_FALLBACK_TEXT = "Hello World"

# 输入注入工具（宿主机上的 ydotool）
INJECTION_TOOL = "ydotool"
INJECTION_TYPE_SUBCOMMAND = "type"
INJECTION_PROBE_SUBCOMMAND = "help"  # ydotool 没有 --version，用 help 探测
INJECTION_DAEMON = "ydotoold"

# Flatpak 沙箱相关
SANDBOX_BROKER = "flatpak-spawn"
SANDBOX_BROKER_ARGS = ["--host"]
SANDBOX_ID_ENV_VAR = "FLATPAK_ID"
SANDBOX_MARKER_FILE = "/.flatpak-info"
SANDBOX_TALK_NAME = "org.freedesktop.Flatpak"
HOST_APP_ID = "me.amankhanna.opendeck"

# 日志脱敏
REDACT_EMPTY_PLACEHOLDER = "(empty)"
REDACT_SHORT_LIMIT = 10  # 不超过该长度只显示首字符
REDACT_MASK = "*" * 15  # 固定长度，与真实长度无关

# OpenDeck / Stream Deck 事件名
EVENT_KEY_DOWN = "keyDown"
EVENT_KEY_UP = "keyUp"
EVENT_WILL_APPEAR = "willAppear"
EVENT_WILL_DISAPPEAR = "willDisappear"
EVENT_DID_RECEIVE_SETTINGS = "didReceiveSettings"
EVENT_SHOW_ALERT = "showAlert"

# 诊断类别
CATEGORY_SERVICE_NOT_RUNNING = "service_not_running"
CATEGORY_SANDBOX_PERMISSION_MISSING = "sandbox_permission_missing"
CATEGORY_TOOL_NOT_INSTALLED = "tool_not_installed"
CATEGORY_UNKNOWN = "unknown"
