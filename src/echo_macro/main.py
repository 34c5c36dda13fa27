#!/usr/bin/env python3
"""
Echo Macro 插件主入口点。

OpenDeck 以 Stream Deck 插件约定启动本程序：
    echo-macro -port <端口> -pluginUUID <UUID> -registerEvent <事件> -info <JSON>

此文件负责：
- 解析启动参数并配置日志
- 在进程启动时检测一次运行环境
- 运行插件事件循环
"""

import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import List, Optional

from echo_macro_shared.constants import PLUGIN_NAME, PLUGIN_UUID, PLUGIN_VERSION

from .config.loader import Config, create_default_user_config
from .injection.sandbox_detector import SandboxDetector
from .plugin import EchoMacroPlugin

logger = logging.getLogger(__name__)

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """解析命令行参数"""
    parser = argparse.ArgumentParser(description=f"{PLUGIN_NAME} ({PLUGIN_UUID}) OpenDeck 插件")
    parser.add_argument("-port", dest="port", type=int, help="OpenDeck WebSocket 端口")
    parser.add_argument("-pluginUUID", dest="plugin_uuid", type=str, help="插件UUID")
    parser.add_argument("-registerEvent", dest="register_event", type=str, help="注册事件名")
    parser.add_argument("-info", dest="info", type=str, default="{}", help="OpenDeck 提供的环境信息(JSON)")
    parser.add_argument("--debug", action="store_true", help="启用调试模式，显示更详细的日志")
    parser.add_argument("--log-file", type=str, help="指定日志文件路径，默认只输出到控制台")
    parser.add_argument("--config-file", type=str, help="配置文件路径")
    parser.add_argument("--init-config", action="store_true", help="在 ~/.config/echo-macro/ 创建默认配置文件后退出")
    args = parser.parse_args(argv)

    # 只有初始化配置时可以省略 OpenDeck 启动参数
    if not args.init_config:
        missing = [name for name, value in (
            ("-port", args.port),
            ("-pluginUUID", args.plugin_uuid),
            ("-registerEvent", args.register_event),
        ) if value is None]
        if missing:
            parser.error(f"缺少参数: {', '.join(missing)}")

    return args


class ColorFilter(logging.Filter):
    """为控制台日志添加颜色代码。"""

    def filter(self, record):
        if record.levelno >= logging.ERROR:
            record.levelcolor = "31"  # 红色
        elif record.levelno >= logging.WARNING:
            record.levelcolor = "33"  # 黄色
        elif record.levelno >= logging.INFO:
            record.levelcolor = "32"  # 绿色
        else:
            record.levelcolor = "36"  # 青色(调试)
        return True


def setup_logging(args, config: Optional[Config] = None) -> logging.Logger:
    """
    根据命令行参数、环境变量和配置设置日志。

    --debug 或 ECHO_MACRO_DEBUG 优先，其次是配置中的 [Plugin] log_level。
    """
    env_debug = os.environ.get("ECHO_MACRO_DEBUG", "0").lower() in ("1", "true", "yes")
    if args.debug or env_debug:
        log_level = logging.DEBUG
    else:
        configured = config.get("Plugin", "log_level", "info") if config else "info"
        log_level = LOG_LEVELS.get(str(configured).lower(), logging.INFO)

    handlers = [logging.StreamHandler()]

    if getattr(args, "log_file", None):
        try:
            handlers.append(logging.FileHandler(args.log_file))
        except OSError as e:
            print(f"无法创建日志文件 {args.log_file}: {e}", file=sys.stderr)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )

    console_handler = handlers[0]
    console_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - \033[36m%(name)s\033[0m - \033[1;%(levelcolor)sm%(levelname)s\033[0m - %(message)s"
        )
    )
    console_handler.addFilter(ColorFilter())

    # 文件日志不带颜色
    if len(handlers) > 1:
        handlers[1].setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

    # 防止第三方库输出过多调试信息
    logging.getLogger("websockets").setLevel(logging.INFO)

    if log_level == logging.DEBUG:
        logger.debug(f"Python版本: {sys.version}")
        logger.debug(f"工作目录: {os.getcwd()}")

    return logger


async def main(args, config: Config) -> int:
    """
    插件主函数。

    检测运行环境、创建插件、注册信号处理器并运行到连接关闭。

    Args:
        args: 解析后的命令行参数
        config: 配置访问器

    Returns:
        int: 退出状态码
    """
    logger.info(f"Echo Macro 插件 v{PLUGIN_VERSION} 正在启动...")

    # 运行环境只检测一次，之后由所有组件共享
    state = SandboxDetector.detect()
    plugin = EchoMacroPlugin(state, config)

    loop = asyncio.get_running_loop()
    stop_tasks = set()

    def request_stop():
        task = asyncio.create_task(plugin.stop())
        stop_tasks.add(task)
        task.add_done_callback(stop_tasks.discard)

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, request_stop)

    if not await plugin.start(args.port, args.register_event, args.plugin_uuid):
        logger.error("插件启动失败")
        return 1

    try:
        await plugin.run()
    finally:
        await plugin.stop()

    return 0


def run(argv: Optional[List[str]] = None) -> int:
    """
    启动插件的公共接口，也是控制台脚本入口。

    Returns:
        int: 退出状态码，0表示正常退出
    """
    args = parse_args(argv)

    if args.init_config:
        setup_logging(args)
        return 0 if create_default_user_config() else 1

    config = Config(config_path=args.config_file)
    setup_logging(args, config)

    try:
        return asyncio.run(main(args, config))
    except KeyboardInterrupt:
        logger.info("程序被用户中断")
        return 0
    finally:
        logger.info("程序退出")


if __name__ == "__main__":
    sys.exit(run())
