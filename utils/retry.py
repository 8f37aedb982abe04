"""
Retry Executor
有界重试，线性退避 (base_delay × 第 i 次失败)
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from config import get_retry_settings


logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


class RetryExecutor:
    """
    通用重试执行器

    不做错误分类: 是否值得重试由调用方通过 retry_on 决定，
    不在 retry_on 中的异常会在第一次失败时直接抛出。
    """

    def __init__(
        self,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        sleep: Optional[SleepFn] = None,
    ):
        """
        Args:
            max_attempts: 最大尝试次数 (默认读取 RetrySettings)
            base_delay: 退避基准 (秒)
            sleep: 可注入的 sleep 协程，测试时用于记录等待时长
        """
        settings = get_retry_settings()
        self.max_attempts = max_attempts if max_attempts is not None else settings.max_attempts
        self.base_delay = base_delay if base_delay is not None else settings.base_delay
        self._sleep = sleep or asyncio.sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    ) -> T:
        """
        执行 operation，失败则按线性退避重试

        Args:
            operation: 无参异步函数
            max_attempts: 覆盖实例默认值
            base_delay: 覆盖实例默认值
            retry_on: 允许重试的异常类型

        Returns:
            operation 的返回值

        Raises:
            最后一次失败的原始异常
        """
        attempts = max_attempts if max_attempts is not None else self.max_attempts
        delay = base_delay if base_delay is not None else self.base_delay

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(1, attempts)),
            wait=wait_incrementing(start=delay, increment=delay),
            retry=retry_if_exception_type(retry_on),
            sleep=self._sleep,
            before_sleep=_log_retry,
            reraise=True,
        )

        # operation 常为返回协程的 lambda，AsyncRetrying 只会 await 协程函数
        async def _attempt() -> T:
            return await operation()

        return await retrying(_attempt)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.debug(
        f"Attempt {retry_state.attempt_number} failed ({exc}), "
        f"retrying in {retry_state.next_action.sleep if retry_state.next_action else 0:.1f}s"
    )
