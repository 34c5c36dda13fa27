"""
失败诊断分类器。

根据分发结果（stderr 文本或启动错误）给出分类后的、可操作的提示，
区分"守护进程未运行"、"沙箱权限缺失"和"工具未安装"。

分类只用于日志提示，不改变分发的成功/失败结果。
"""

import logging
from typing import List, Optional, Tuple

from echo_macro_shared.constants import (
    CATEGORY_SANDBOX_PERMISSION_MISSING,
    CATEGORY_SERVICE_NOT_RUNNING,
    CATEGORY_TOOL_NOT_INSTALLED,
    CATEGORY_UNKNOWN,
    HOST_APP_ID,
    INJECTION_DAEMON,
    INJECTION_TOOL,
    SANDBOX_BROKER,
    SANDBOX_TALK_NAME,
)
from echo_macro_shared.data_models import (
    DiagnosticReport,
    DispatchOutcome,
    EnvironmentState,
    ExitedWithError,
    SpawnFailed,
)

logger = logging.getLogger(__name__)

# stderr 标记短语 -> (类别, 提示, 仅沙箱模式)，按顺序匹配，先命中者生效。
# 上游工具的报错文本变化时只需要更新这张表。
STDERR_MARKERS: List[Tuple[Tuple[str, ...], str, str, bool]] = [
    (
        ("ydotoold", "socket", "connection"),
        CATEGORY_SERVICE_NOT_RUNNING,
        "{daemon} 守护进程可能未运行。"
        "请执行: systemctl start {daemon}（或在终端中直接运行 {daemon}）",
        False,
    ),
    (
        ("flatpak-spawn", "not found", "org.freedesktop.flatpak"),
        CATEGORY_SANDBOX_PERMISSION_MISSING,
        "{broker} 可能不可用或被拒绝。"
        "Flatpak 需要 --talk-name={talk_name} 权限: "
        "flatpak override --user --talk-name={talk_name} {app_id}",
        True,
    ),
]

HOST_INSTALL_HINT = (
    "请确认 {tool} 已安装在宿主机（HOST）系统上，而不是沙箱内。"
    "同时检查权限: flatpak override --user --talk-name={talk_name} {app_id}"
)
NATIVE_INSTALL_HINT = "请确认已安装 {tool}: sudo apt install {tool}"
UNKNOWN_HINT = "{tool} 执行失败，原因未知"


class DiagnosticClassifier:
    """
    分发失败诊断分类器。
    """

    def __init__(
        self,
        tool: str = INJECTION_TOOL,
        broker: str = SANDBOX_BROKER,
        host_app_id: str = HOST_APP_ID,
    ):
        self._hint_args = {
            "tool": tool,
            "broker": broker,
            "daemon": INJECTION_DAEMON,
            "talk_name": SANDBOX_TALK_NAME,
            "app_id": host_app_id,
        }

    def classify(
        self, outcome: DispatchOutcome, state: EnvironmentState
    ) -> Optional[DiagnosticReport]:
        """
        对分发结果进行分类。

        Args:
            outcome: 分发结果
            state: 环境快照

        Returns:
            Optional[DiagnosticReport]: 成功时返回 None，否则返回诊断
        """
        if isinstance(outcome, ExitedWithError):
            return self._classify_stderr(outcome.stderr, state)

        if isinstance(outcome, SpawnFailed):
            # 沙箱中连代理本身都无法启动，提示在宿主机安装
            hint = HOST_INSTALL_HINT if state.isolated else NATIVE_INSTALL_HINT
            return DiagnosticReport(
                category=CATEGORY_TOOL_NOT_INSTALLED,
                message=hint.format(**self._hint_args),
                detail=outcome.message,
            )

        return None

    def _classify_stderr(self, stderr: str, state: EnvironmentState) -> DiagnosticReport:
        """按标记表匹配 stderr（不区分大小写）。原生模式不经过代理，跳过沙箱标记。"""
        lowered = stderr.lower()
        for phrases, category, hint, isolated_only in STDERR_MARKERS:
            if isolated_only and not state.isolated:
                continue
            if any(phrase in lowered for phrase in phrases):
                return DiagnosticReport(
                    category=category,
                    message=hint.format(**self._hint_args),
                    detail=stderr,
                )

        return DiagnosticReport(
            category=CATEGORY_UNKNOWN,
            message=UNKNOWN_HINT.format(**self._hint_args),
            detail=stderr,
        )

    @staticmethod
    def log_report(report: Optional[DiagnosticReport]) -> None:
        """把诊断写入日志。"""
        if report is None:
            return
        logger.error(f"[{report.category}] {report.message}")
        if report.detail:
            logger.error(f"详细信息: {report.detail.strip()}")
