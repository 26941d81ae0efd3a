import pytest

from guardian_api.circuit_breaker import CircuitBreaker, CircuitOpenError


@pytest.mark.asyncio
async def test_circuit_breaker_opens_after_threshold() -> None:
    breaker = CircuitBreaker(name="routing", failure_threshold=2, recovery_timeout_seconds=30)
    now = 100.0

    async def fail_call() -> str:
        raise RuntimeError("provider failure")

    with pytest.raises(RuntimeError):
        await breaker.call(fail_call, now_seconds=now)
    with pytest.raises(RuntimeError):
        await breaker.call(fail_call, now_seconds=now + 1)
    with pytest.raises(CircuitOpenError) as exc_info:
        await breaker.call(fail_call, now_seconds=now + 2)

    assert "routing" in str(exc_info.value)


@pytest.mark.asyncio
async def test_circuit_breaker_recovers_after_timeout() -> None:
    breaker = CircuitBreaker(failure_threshold=1, recovery_timeout_seconds=10)
    now = 100.0

    async def fail_call() -> str:
        raise RuntimeError("provider failure")

    async def success_call() -> str:
        return "ok"

    with pytest.raises(RuntimeError):
        await breaker.call(fail_call, now_seconds=now)
    with pytest.raises(CircuitOpenError):
        await breaker.call(success_call, now_seconds=now + 1)

    result = await breaker.call(success_call, now_seconds=now + 11)
    assert result == "ok"


@pytest.mark.asyncio
async def test_circuit_breaker_resets_after_success() -> None:
    breaker = CircuitBreaker(failure_threshold=2, recovery_timeout_seconds=10)
    now = 100.0

    async def fail_call() -> str:
        raise RuntimeError("provider failure")

    async def success_call() -> str:
        return "ok"

    with pytest.raises(RuntimeError):
        await breaker.call(fail_call, now_seconds=now)
    result = await breaker.call(success_call, now_seconds=now + 1)
    assert result == "ok"

    with pytest.raises(RuntimeError):
        await breaker.call(fail_call, now_seconds=now + 2)
    assert breaker.name == "provider"


@pytest.mark.asyncio
async def test_circuit_breaker_state_reports_without_resetting() -> None:
    breaker = CircuitBreaker(name="geocoding", failure_threshold=1, recovery_timeout_seconds=10)

    async def fail_call() -> str:
        raise RuntimeError("provider failure")

    assert breaker.state(100.0) == "closed"
    with pytest.raises(RuntimeError):
        await breaker.call(fail_call, now_seconds=100.0)

    assert breaker.state(105.0) == "open"
    assert breaker.state(110.0) == "half_open"
    assert breaker.state(105.0) == "open"
