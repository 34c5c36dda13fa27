"""
Echo Macro 配置加载器。

该模块提供了加载插件配置的功能，支持从用户配置文件或默认值中读取设置。
"""

import os
import logging
import configparser
import shutil
from pathlib import Path
from typing import Dict, Any, Optional, List


# 设置日志记录器
logger = logging.getLogger(__name__)

USER_CONFIG_DIR = "~/.config/echo-macro"
USER_CONFIG_PATH = USER_CONFIG_DIR + "/config.ini"

# 内置默认配置值
BUILTIN_DEFAULTS = {
    'Plugin': {
        'fallback_text': 'Hello World',
        'log_level': 'debug',
    },
    'Injection': {
        'tool': 'ydotool',
        'broker': 'flatpak-spawn',
        'broker_args': '--host',
        'host_app_id': 'me.amankhanna.opendeck',
        'probe_on_start': 'true',
    }
}


class Config:
    """配置访问器类，提供面向对象的配置访问接口。"""

    def __init__(self, config_data: Dict[str, Dict[str, str]] = None, config_path: Optional[str] = None):
        """
        初始化配置访问器。

        Args:
            config_data: 可选的配置数据字典
            config_path: 可选的配置文件路径
        """
        if config_data is None:
            self._config = load_config(config_path)
        else:
            self._config = config_data

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        获取配置值。

        Args:
            section: 配置节名
            key: 配置键名
            default: 默认值

        Returns:
            配置值
        """
        if section not in self._config:
            return default

        section_config = self._config[section]
        return section_config.get(key, default)

    def get_bool(self, section: str, key: str, default: bool = False) -> bool:
        """获取布尔配置值。"""
        return get_bool_config(self._config, section, key, default)

    def get_list(self, section: str, key: str, default: List[str] = None, delimiter: str = ',') -> List[str]:
        """
        获取列表配置值（以分隔符分隔的字符串）。

        Args:
            section: 配置节名
            key: 配置键名
            default: 默认列表值
            delimiter: 分隔符

        Returns:
            List[str]: 配置的列表值
        """
        if default is None:
            default = []

        value = self.get(section, key, None)
        if value is None:
            return list(default)

        if isinstance(value, list):
            return value

        if not isinstance(value, str):
            logger.warning(f"无法转换为列表的配置: [{section}].{key}={value}，使用默认值: {default}")
            return list(default)

        return [item.strip() for item in value.split(delimiter) if item.strip()]

    def plugin(self) -> Dict[str, str]:
        """获取插件配置部分。"""
        return self._config.get('Plugin', {})

    def injection(self) -> Dict[str, str]:
        """获取注入配置部分。"""
        return self._config.get('Injection', {})

    def fallback_text(self) -> str:
        """未配置文本时使用的后备文本。"""
        return self.get('Plugin', 'fallback_text') or BUILTIN_DEFAULTS['Plugin']['fallback_text']


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    加载插件配置。

    加载顺序:
    1. 首先尝试从指定路径或默认用户配置文件(~/.config/echo-macro/config.ini)加载配置。
    2. 对于缺失的键，从打包的默认配置文件(config/default_config.ini)加载。
    3. 如果仍有缺失的键，使用内置默认值。

    Args:
        config_path: 可选的配置文件路径，如果不提供则使用默认路径

    Returns:
        包含配置键值对的字典
    """
    # 关闭插值，文本中可能出现 %
    config = configparser.ConfigParser(interpolation=None)
    default_config = configparser.ConfigParser(interpolation=None)

    if config_path is None:
        user_config_path = os.path.expanduser(USER_CONFIG_PATH)
    else:
        user_config_path = config_path

    package_config_path = Path(__file__).parents[3] / "config" / "default_config.ini"

    # 跟踪已加载的配置文件
    loaded_configs = []

    # 步骤1: 尝试加载用户配置文件
    if os.path.exists(user_config_path):
        try:
            files_read = config.read(user_config_path, encoding='utf-8')
            if files_read:
                loaded_configs.append(user_config_path)
                logger.debug(f"已从用户配置文件加载配置: {user_config_path}")
        except configparser.Error as e:
            logger.error(f"读取用户配置文件时出错: {str(e)}")
    else:
        logger.debug(f"用户配置文件不存在: {user_config_path}")

    # 步骤2: 加载默认配置文件
    if os.path.exists(package_config_path):
        try:
            files_read = default_config.read(package_config_path, encoding='utf-8')
            if files_read:
                loaded_configs.append(str(package_config_path))
                logger.debug(f"已加载默认配置文件: {package_config_path}")

                # 填充用户配置中缺失的部分
                for section in default_config.sections():
                    if not config.has_section(section):
                        config.add_section(section)

                    for key, value in default_config[section].items():
                        if key not in config[section]:
                            config.set(section, key, value)
                            logger.debug(f"从默认配置中添加缺失的设置: [{section}].{key}={value}")
        except configparser.Error as e:
            logger.error(f"读取默认配置文件时出错: {str(e)}")
    else:
        logger.debug(f"默认配置文件不存在: {package_config_path}")

    # 步骤3: 确保所有内置默认值都存在
    for section, options in BUILTIN_DEFAULTS.items():
        if not config.has_section(section):
            config.add_section(section)

        for key, value in options.items():
            if key not in config[section]:
                config.set(section, key, value)
                logger.debug(f"使用内置默认值: [{section}].{key}={value}")

    if not loaded_configs:
        logger.info("未找到配置文件，使用内置默认值")

    # 将配置转换为字典并返回
    result = {}
    for section in config.sections():
        result[section] = dict(config[section])

    return result


def get_bool_config(config: Dict[str, Any], section: str, key: str, default: bool = False) -> bool:
    """
    从配置中获取布尔值，正确处理字符串表示的布尔值。

    支持的真值：'true', 'yes', '1', 't', 'y'（不区分大小写）
    支持的假值：'false', 'no', '0', 'f', 'n'（不区分大小写）

    Args:
        config: 包含配置的字典
        section: 配置节名
        key: 配置键名
        default: 默认布尔值，当键不存在或无法识别时返回

    Returns:
        bool: 配置的布尔值
    """
    if section not in config:
        return default

    section_config = config[section]
    if key not in section_config:
        return default

    value = section_config[key]

    if isinstance(value, bool):
        return value

    if isinstance(value, str):
        true_values = ('true', 'yes', '1', 't', 'y')
        false_values = ('false', 'no', '0', 'f', 'n')

        value_lower = value.lower()

        if value_lower in true_values:
            return True
        if value_lower in false_values:
            return False

    logger.warning(f"无法识别为布尔值的配置: [{section}].{key}={value}，使用默认值: {default}")
    return default


def ensure_config_directory() -> bool:
    """
    确保配置目录存在。

    创建~/.config/echo-macro/目录（如果不存在）。

    返回:
        bool: 如果目录已存在或成功创建则为True，否则为False
    """
    config_dir = os.path.expanduser(USER_CONFIG_DIR)
    try:
        os.makedirs(config_dir, exist_ok=True)
        logger.info(f"已确保配置目录存在: {config_dir}")
        return True
    except OSError as e:
        logger.error(f"创建配置目录时出错: {str(e)}")
        return False


def create_default_user_config() -> bool:
    """
    在用户配置目录创建默认配置文件。

    如果用户配置文件不存在，将默认配置文件复制到~/.config/echo-macro/config.ini，
    默认配置文件也不存在时从内置默认值生成。

    返回:
        bool: 如果文件已存在或成功创建则为True，否则为False
    """
    user_config_path = os.path.expanduser(USER_CONFIG_PATH)

    if os.path.exists(user_config_path):
        logger.info(f"用户配置文件已存在: {user_config_path}")
        return True

    if not ensure_config_directory():
        return False

    package_config_path = Path(__file__).parents[3] / "config" / "default_config.ini"

    if os.path.exists(package_config_path):
        try:
            shutil.copy2(package_config_path, user_config_path)
            logger.info(f"已创建用户配置文件: {user_config_path}")
            return True
        except OSError as e:
            logger.error(f"创建用户配置文件时出错: {str(e)}")
            return False

    try:
        config = configparser.ConfigParser(interpolation=None)
        config.read_dict(BUILTIN_DEFAULTS)

        with open(user_config_path, 'w', encoding='utf-8') as f:
            config.write(f)

        logger.info(f"已从内置默认值创建用户配置文件: {user_config_path}")
        return True
    except OSError as e:
        logger.error(f"从内置默认值创建用户配置文件时出错: {str(e)}")
        return False
