"""
Flatpak 沙箱检测器。

检测当前进程是否运行在与宿主机隔离的 Flatpak 沙箱中。
"""

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from echo_macro_shared.constants import SANDBOX_ID_ENV_VAR, SANDBOX_MARKER_FILE
from echo_macro_shared.data_models import EnvironmentState

logger = logging.getLogger(__name__)


class SandboxDetector:
    """
    沙箱检测器。

    两个独立信号任一存在即认为处于沙箱：
    - 环境变量 FLATPAK_ID
    - 标记文件 /.flatpak-info

    结果应只计算一次，由入口创建后传给所有组件。
    """

    @staticmethod
    def detect(
        environ: Optional[Mapping[str, str]] = None,
        marker_file: Optional[str] = None,
    ) -> EnvironmentState:
        """
        检测当前运行环境。

        Args:
            environ: 环境变量映射，默认使用 os.environ
            marker_file: 标记文件路径，默认 /.flatpak-info

        Returns:
            EnvironmentState: 环境快照
        """
        has_identity_marker = SandboxDetector._check_env_variable(environ)
        has_marker_file = SandboxDetector._check_marker_file(marker_file or SANDBOX_MARKER_FILE)

        logger.debug(
            f"{SANDBOX_ID_ENV_VAR} 存在: {has_identity_marker}, "
            f"{marker_file or SANDBOX_MARKER_FILE} 存在: {has_marker_file}"
        )

        state = EnvironmentState(
            isolated=has_identity_marker or has_marker_file,
            has_identity_marker=has_identity_marker,
            has_marker_file=has_marker_file,
        )

        if state.isolated:
            logger.info("检测到 Flatpak 沙箱，将通过 flatpak-spawn 调用宿主机 ydotool")
        else:
            logger.info("运行在原生环境，将直接调用 ydotool")

        return state

    @staticmethod
    def _check_env_variable(environ: Optional[Mapping[str, str]]) -> bool:
        """检查沙箱身份环境变量。"""
        env = os.environ if environ is None else environ
        return SANDBOX_ID_ENV_VAR in env

    @staticmethod
    def _check_marker_file(path: str) -> bool:
        """检查沙箱标记文件，探测失败视为不存在。"""
        try:
            return Path(path).exists()
        except OSError as e:
            logger.debug(f"无法探测标记文件 {path}: {e}")
            return False
