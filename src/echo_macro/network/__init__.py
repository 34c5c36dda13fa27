"""OpenDeck 通信。"""

from .client import OpenDeckConnection

__all__ = ["OpenDeckConnection"]
