"""Tests for the retry wrapper."""

import pytest

from storyboard.retry import call_with_retry, is_retryable_error


class Flaky:
    """Fails with the given errors, then returns a value."""

    def __init__(self, errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class TestIsRetryableError:
    @pytest.mark.parametrize(
        "message",
        [
            "429 Too Many Requests",
            "Quota exceeded for this project",
            "RESOURCE_EXHAUSTED",
            "Resource has been exhausted (e.g. check quota).",
            "503 Service Unavailable",
            "The model is overloaded. Please try again later.",
        ],
    )
    def test_transient_errors(self, message):
        assert is_retryable_error(RuntimeError(message))

    @pytest.mark.parametrize(
        "message",
        ["400 Bad Request", "403 PERMISSION_DENIED", "blocked by safety filter", "boom"],
    )
    def test_fatal_errors(self, message):
        assert not is_retryable_error(RuntimeError(message))

    def test_custom_signals(self):
        assert is_retryable_error(RuntimeError("try later"), signals=["TRY LATER"])
        assert not is_retryable_error(RuntimeError("429"), signals=["overloaded"])


class TestCallWithRetry:
    @pytest.mark.asyncio
    async def test_success_without_retry(self, sleep):
        operation = Flaky([])
        assert await call_with_retry(operation, 5, 1000, sleep=sleep) == "ok"
        assert operation.calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_delays_double_from_base(self, sleep):
        operation = Flaky([RuntimeError("429")] * 3, result="image")

        result = await call_with_retry(operation, 5, 1000, sleep=sleep)

        assert result == "image"
        assert operation.calls == 4
        assert sleep.delays == [1000, 2000, 4000]

    @pytest.mark.asyncio
    async def test_retries_exactly_max_retries(self, sleep):
        operation = Flaky([RuntimeError("quota")] * 3)

        result = await call_with_retry(operation, 3, 2, sleep=sleep)

        assert result == "ok"
        assert sleep.delays == [2, 4, 8]

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_last_error(self, sleep):
        errors = [RuntimeError("429 first"), RuntimeError("429 second"), RuntimeError("429 last")]
        operation = Flaky(errors)

        with pytest.raises(RuntimeError, match="429 last"):
            await call_with_retry(operation, 2, 1, sleep=sleep)

        assert operation.calls == 3
        assert sleep.delays == [1, 2]

    @pytest.mark.asyncio
    async def test_fatal_error_is_not_retried(self, sleep):
        operation = Flaky([ValueError("400 invalid prompt")])

        with pytest.raises(ValueError):
            await call_with_retry(operation, 5, 1, sleep=sleep)

        assert operation.calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_zero_retries(self, sleep):
        operation = Flaky([RuntimeError("503")])

        with pytest.raises(RuntimeError):
            await call_with_retry(operation, 0, 1, sleep=sleep)

        assert operation.calls == 1

    @pytest.mark.asyncio
    async def test_on_retry_callback(self, sleep):
        seen = []
        operation = Flaky([RuntimeError("overloaded"), RuntimeError("overloaded")])

        await call_with_retry(
            operation, 5, 10, sleep=sleep,
            on_retry=lambda attempt, delay, error: seen.append((attempt, delay)),
        )

        assert seen == [(1, 10), (2, 20)]

    @pytest.mark.asyncio
    async def test_custom_classifier(self, sleep):
        operation = Flaky([KeyError("anything")])

        result = await call_with_retry(
            operation, 1, 5, sleep=sleep, is_retryable=lambda e: isinstance(e, KeyError)
        )

        assert result == "ok"
        assert sleep.delays == [5]
