"""
命令分发器。

以子进程执行调用，等待结束，并把结果映射为 Success / SpawnFailed / ExitedWithError。
"""

import asyncio
import logging
import subprocess

from echo_macro_shared.data_models import (
    DispatchOutcome,
    ExitedWithError,
    Invocation,
    SpawnFailed,
    Success,
)

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    执行外部命令。

    每次分发只尝试一次，不重试、不设超时。调用会阻塞当前线程直到子进程结束，
    在事件循环中应使用 dispatch_async。
    """

    def dispatch(self, invocation: Invocation) -> DispatchOutcome:
        """
        执行调用并返回结果。

        Args:
            invocation: 要执行的命令

        Returns:
            DispatchOutcome: 执行结果，分发失败不会抛出异常
        """
        # 参数中可能包含待键入文本，只记录程序名和参数个数
        logger.debug(f"执行 {invocation.program}（{len(invocation.arguments)} 个参数）")

        try:
            result = subprocess.run(invocation.argv(), capture_output=True)
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            logger.debug(f"无法启动 {invocation.program}: {e}")
            return SpawnFailed(message=str(e))

        if result.returncode != 0:
            stderr = (result.stderr or b"").decode("utf-8", errors="replace")
            logger.debug(f"{invocation.program} 退出码: {result.returncode}")
            return ExitedWithError(stderr=stderr, exit_code=result.returncode)

        logger.debug(f"{invocation.program} 执行成功")
        return Success()

    async def dispatch_async(self, invocation: Invocation) -> DispatchOutcome:
        """在默认线程池中执行调用，避免阻塞事件循环。"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.dispatch, invocation)
