"""Tests for the bounded retry loop."""

import asyncio

import pytest

from taleforger.generation import (
    AttemptOutcome,
    AttemptTimeoutError,
    EmptyGenerationError,
    GenerationExhaustedError,
    GenerationRequest,
    RetryPolicy,
    generate_with_retry,
)

REQUEST = GenerationRequest(system_instruction="You are an author.", user_prompt="Write a tale.")


class ScriptedCall:
    """Generation call that plays back a script of results.

    Each entry is either text to return or an exception to raise; the last
    entry repeats once the script runs out.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.requests: list[GenerationRequest] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def __call__(self, request: GenerationRequest):
        self.requests.append(request)
        step = self.script[min(len(self.requests), len(self.script)) - 1]
        if isinstance(step, BaseException):
            raise step
        return step


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def run(call, policy=None, **kwargs):
    sleep = kwargs.pop("sleep", None) or RecordingSleep()
    result = asyncio.run(generate_with_retry(call, REQUEST, policy, sleep=sleep, **kwargs))
    return result, sleep


class TestSuccess:
    """Success short-circuits the loop."""

    def test_first_attempt_success_makes_one_call_and_no_sleep(self) -> None:
        call = ScriptedCall("Once upon a time...")

        text, sleep = run(call)

        assert text == "Once upon a time..."
        assert call.calls == 1
        assert sleep.delays == []

    def test_fail_twice_then_succeed(self) -> None:
        call = ScriptedCall(
            RuntimeError("overloaded"),
            RuntimeError("overloaded"),
            "Once upon a time...",
        )

        text, sleep = run(call)

        assert text == "Once upon a time..."
        assert call.calls == 3
        assert sleep.delays == [1.0, 2.0]

    def test_request_is_passed_through_unchanged(self) -> None:
        call = ScriptedCall(ValueError("bad"), "text")

        run(call)

        assert call.requests == [REQUEST, REQUEST]

    def test_whitespace_text_counts_as_success(self) -> None:
        call = ScriptedCall(" ")

        text, _ = run(call)

        assert text == " "
        assert call.calls == 1


class TestExhaustion:
    """Every attempt failing ends in a single terminal error."""

    def test_always_failing_call_is_invoked_max_attempts_times(self) -> None:
        call = ScriptedCall(RuntimeError("boom"))
        sleep = RecordingSleep()

        with pytest.raises(GenerationExhaustedError):
            run(call, sleep=sleep)

        assert call.calls == 3
        # No sleep after the final attempt
        assert sleep.delays == [1.0, 2.0]

    def test_terminal_message_names_attempts_and_last_error(self) -> None:
        call = ScriptedCall(RuntimeError("first"), RuntimeError("second"), RuntimeError("quota exceeded"))

        with pytest.raises(GenerationExhaustedError) as exc_info:
            run(call)

        error = exc_info.value
        assert str(error) == (
            "Failed to generate content after 3 attempts. Last error: quota exceeded"
        )
        assert error.attempts == 3
        assert str(error.last_error) == "quota exceeded"
        assert error.__cause__ is error.last_error

    def test_always_empty_text_exhausts_with_no_text_content_message(self) -> None:
        call = ScriptedCall("")

        with pytest.raises(GenerationExhaustedError) as exc_info:
            run(call)

        assert call.calls == 3
        assert "3 attempts" in str(exc_info.value)
        assert "API returned no text content." in str(exc_info.value)
        assert isinstance(exc_info.value.last_error, EmptyGenerationError)

    def test_none_is_treated_like_empty_text(self) -> None:
        call = ScriptedCall(None, "recovered")

        text, sleep = run(call)

        assert text == "recovered"
        assert call.calls == 2
        assert sleep.delays == [1.0]

    def test_empty_and_raised_failures_behave_identically(self) -> None:
        empty = ScriptedCall("", "", "done")
        raising = ScriptedCall(RuntimeError("x"), RuntimeError("y"), "done")

        empty_text, empty_sleep = run(empty)
        raising_text, raising_sleep = run(raising)

        assert empty_text == raising_text == "done"
        assert empty.calls == raising.calls == 3
        assert empty_sleep.delays == raising_sleep.delays

    def test_error_without_message_uses_class_name(self) -> None:
        call = ScriptedCall(ConnectionError())

        with pytest.raises(GenerationExhaustedError, match="Last error: ConnectionError"):
            run(call)


class TestPolicy:
    """Policy knobs change attempt count and delays."""

    def test_backoff_doubles_from_base_delay(self) -> None:
        call = ScriptedCall(RuntimeError("down"))
        sleep = RecordingSleep()

        with pytest.raises(GenerationExhaustedError, match="after 5 attempts"):
            run(call, RetryPolicy(max_attempts=5, base_delay=0.5), sleep=sleep)

        assert call.calls == 5
        assert sleep.delays == [0.5, 1.0, 2.0, 4.0]

    def test_single_attempt_never_sleeps(self) -> None:
        call = ScriptedCall(RuntimeError("down"))
        sleep = RecordingSleep()

        with pytest.raises(GenerationExhaustedError, match="after 1 attempts"):
            run(call, RetryPolicy(max_attempts=1), sleep=sleep)

        assert sleep.delays == []

    def test_delay_for(self) -> None:
        policy = RetryPolicy()
        assert [policy.delay_for(i) for i in range(3)] == [1.0, 2.0, 4.0]

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_attempts": 0}, {"base_delay": -1.0}, {"attempt_timeout": 0}],
    )
    def test_invalid_policy_is_rejected(self, kwargs) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)

    def test_default_sleep_waits_real_time(self) -> None:
        call = ScriptedCall(RuntimeError("blip"), "ok")

        async def timed() -> float:
            loop = asyncio.get_running_loop()
            started = loop.time()
            await generate_with_retry(call, REQUEST, RetryPolicy(base_delay=0.05))
            return loop.time() - started

        elapsed = asyncio.run(timed())
        assert elapsed >= 0.04


class TestTimeoutAndCancellation:
    """Per-attempt deadline and outside cancellation."""

    def test_hung_attempt_times_out_and_is_retried(self) -> None:
        calls = 0

        async def hangs_once(request: GenerationRequest) -> str:
            nonlocal calls
            calls += 1
            if calls == 1:
                await asyncio.sleep(10)
            return "late but fine"

        text, sleep = run(hangs_once, RetryPolicy(attempt_timeout=0.05))

        assert text == "late but fine"
        assert calls == 2
        assert sleep.delays == [1.0]

    def test_timeouts_on_every_attempt_exhaust(self) -> None:
        async def hangs(request: GenerationRequest) -> str:
            await asyncio.sleep(10)
            return "never"

        with pytest.raises(GenerationExhaustedError) as exc_info:
            run(hangs, RetryPolicy(attempt_timeout=0.01))

        assert isinstance(exc_info.value.last_error, AttemptTimeoutError)
        assert "timed out" in str(exc_info.value)

    def test_timeout_raised_by_the_call_keeps_its_message(self) -> None:
        call = ScriptedCall(TimeoutError("upstream read timed out"))

        with pytest.raises(GenerationExhaustedError) as exc_info:
            run(call, RetryPolicy(attempt_timeout=5))

        last_error = exc_info.value.last_error
        assert type(last_error) is TimeoutError
        assert str(exc_info.value).endswith("Last error: upstream read timed out")
        assert call.calls == 3

    def test_exhaustion_chains_the_final_failure(self) -> None:
        final = RuntimeError("third")
        call = ScriptedCall(RuntimeError("first"), RuntimeError("second"), final)

        with pytest.raises(GenerationExhaustedError) as exc_info:
            run(call)

        assert exc_info.value.__cause__ is final
        assert exc_info.value.last_error is final

    def test_cancelling_the_task_stops_the_loop(self) -> None:
        call = ScriptedCall(RuntimeError("down"))

        async def cancel_during_backoff() -> None:
            task = asyncio.create_task(
                generate_with_retry(call, REQUEST, RetryPolicy(base_delay=10))
            )
            await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(cancel_during_backoff())
        assert call.calls == 1


class TestAttemptHook:
    """on_attempt sees every attempt in order."""

    def test_records_outcomes(self) -> None:
        call = ScriptedCall(RuntimeError("a"), "", "story")
        attempts = []

        run(call, on_attempt=attempts.append)

        assert [a.index for a in attempts] == [0, 1, 2]
        assert [a.outcome for a in attempts] == [
            AttemptOutcome.FAILED,
            AttemptOutcome.FAILED,
            AttemptOutcome.SUCCESS,
        ]
        assert attempts[2].text == "story"
        assert isinstance(attempts[1].error, EmptyGenerationError)

    def test_final_failure_is_marked_exhausted(self) -> None:
        call = ScriptedCall(RuntimeError("a"))
        attempts = []

        with pytest.raises(GenerationExhaustedError):
            run(call, on_attempt=attempts.append)

        assert attempts[-1].outcome is AttemptOutcome.EXHAUSTED
        assert attempts[-1].number == 3
