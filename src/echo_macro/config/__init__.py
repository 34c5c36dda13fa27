"""插件配置。"""

from .loader import Config, load_config

__all__ = ["Config", "load_config"]
