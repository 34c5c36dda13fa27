"""
日志文本脱敏。

在任何文本内容写入日志之前生成一个保护隐私的表示形式。

注意：这只是尽力而为的混淆，不是安全保证。短文本仍会暴露首字符，
长文本会暴露首尾字符和长度。
"""

from echo_macro_shared.constants import (
    REDACT_EMPTY_PLACEHOLDER,
    REDACT_MASK,
    REDACT_SHORT_LIMIT,
)


def redact(payload: str) -> str:
    """
    返回文本的脱敏表示。

    - 空文本: "(empty)"
    - 不超过10个字符: 首字符 + "..." + 字符数，例如 "H... (5 chars)"
    - 超过10个字符: 首字符 + 15个星号 + 尾字符 + 字符数，
      例如 "H***************n (15 chars)"

    Args:
        payload: 原始文本

    Returns:
        str: 脱敏后的文本
    """
    length = len(payload)
    if length == 0:
        return REDACT_EMPTY_PLACEHOLDER

    first = payload[0]
    if length <= REDACT_SHORT_LIMIT:
        return f"{first}... ({length} chars)"

    last = payload[-1]
    return f"{first}{REDACT_MASK}{last} ({length} chars)"
