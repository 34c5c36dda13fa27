"""
Echo Macro 插件包

按下 OpenDeck / Stream Deck 按键时通过 ydotool 键入预设文本，
支持原生运行和 Flatpak 沙箱内运行。
"""

__version__ = "0.1.0"
