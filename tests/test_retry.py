"""
Tests for RetryExecutor
"""
import pytest

from utils.exceptions import AuthError, TransientFetchError
from utils.retry import RetryExecutor


class _Flaky:
    """前 failures 次抛出异常，之后返回 value"""

    def __init__(self, failures, value="ok", error_factory=None):
        self.failures = failures
        self.value = value
        self.calls = 0
        self.error_factory = error_factory or (lambda n: TransientFetchError(f"attempt {n}"))

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error_factory(self.calls)
        return self.value


class TestRetryExecutor:
    """重试执行器测试"""

    @pytest.mark.asyncio
    async def test_success_first_try_does_not_sleep(self, retry, sleeps):
        op = _Flaky(failures=0)
        assert await retry.execute(op) == "ok"
        assert op.calls == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_linear_backoff_between_attempts(self, retry, sleeps):
        op = _Flaky(failures=2, value="third")
        result = await retry.execute(op, retry_on=(TransientFetchError,))

        assert result == "third"
        assert op.calls == 3
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_lambda_returning_coroutine_is_awaited(self, retry, sleeps):
        calls = []

        async def fetch(key):
            calls.append(key)
            if len(calls) < 3:
                raise TransientFetchError(f"attempt {len(calls)}")
            return f"value-{key}"

        result = await retry.execute(lambda: fetch("a"), retry_on=(TransientFetchError,))

        assert result == "value-a"
        assert calls == ["a", "a", "a"]
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhausted_attempts_reraise_last_error(self, retry, sleeps):
        op = _Flaky(failures=5)
        with pytest.raises(TransientFetchError) as exc_info:
            await retry.execute(op, retry_on=(TransientFetchError,))

        assert op.calls == 3
        assert exc_info.value.message == "attempt 3"
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_unlisted_exception_is_not_retried(self, retry, sleeps):
        op = _Flaky(failures=1, error_factory=lambda n: AuthError("session expired"))
        with pytest.raises(AuthError):
            await retry.execute(op, retry_on=(TransientFetchError,))

        assert op.calls == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_per_call_overrides(self, retry, sleeps):
        op = _Flaky(failures=4)
        result = await retry.execute(op, max_attempts=5, base_delay=0.5)

        assert result == "ok"
        assert sleeps == [0.5, 1.0, 1.5, 2.0]

    @pytest.mark.asyncio
    async def test_single_attempt_never_sleeps(self, sleeps):
        async def fake_sleep(seconds):
            sleeps.append(seconds)

        executor = RetryExecutor(max_attempts=1, base_delay=1.0, sleep=fake_sleep)
        op = _Flaky(failures=1)
        with pytest.raises(TransientFetchError):
            await executor.execute(op)
        assert op.calls == 1
        assert sleeps == []
