import pytest

from hireall.core import circuit_breaker
from hireall.core.circuit_breaker import (
    AI_SERVICE,
    CLOSED,
    HALF_OPEN,
    OPEN,
    CircuitOpenError,
    call_with_circuit_breaker,
    configure_circuit,
    get_all_circuit_statuses,
    get_circuit_status,
    is_circuit_open,
    record_failure,
    record_success,
    reset_circuit,
)
from hireall.core.errors import ServiceUnavailableError


@pytest.fixture
def clock(monkeypatch):
    now = {"ms": 5_000_000}
    monkeypatch.setattr(circuit_breaker, "_now_ms", lambda: now["ms"])
    return now


@pytest.fixture
def service():
    configure_circuit("payments", failure_threshold=2, reset_timeout_ms=10_000, success_threshold=2)
    return "payments"


def boom():
    raise RuntimeError("upstream down")


def test_opens_after_failure_threshold(clock, service):
    record_failure(service)
    assert get_circuit_status(service)["state"] == CLOSED
    record_failure(service)

    assert get_circuit_status(service)["state"] == OPEN
    assert is_circuit_open(service)


def test_success_in_closed_state_resets_failures(clock, service):
    record_failure(service)
    record_success(service)
    record_failure(service)
    assert get_circuit_status(service)["state"] == CLOSED


def test_open_circuit_raises_503_with_retry_after(clock, service):
    record_failure(service)
    record_failure(service)
    clock["ms"] += 4_000

    with pytest.raises(CircuitOpenError) as exc_info:
        call_with_circuit_breaker(service, lambda: "never called")

    assert isinstance(exc_info.value, ServiceUnavailableError)
    assert exc_info.value.status_code == 503
    assert exc_info.value.retry_after == 6


def test_open_circuit_uses_fallback(clock, service):
    record_failure(service)
    record_failure(service)
    assert call_with_circuit_breaker(service, lambda: "live", fallback=lambda: "cached") == "cached"


def test_half_open_after_timeout_then_closes_on_successes(clock, service):
    record_failure(service)
    record_failure(service)
    clock["ms"] += 10_000

    assert not is_circuit_open(service)
    assert get_circuit_status(service)["state"] == HALF_OPEN

    assert call_with_circuit_breaker(service, lambda: 1) == 1
    assert get_circuit_status(service)["state"] == HALF_OPEN
    call_with_circuit_breaker(service, lambda: 2)
    status = get_circuit_status(service)
    assert status["state"] == CLOSED
    assert status["failures"] == 0


def test_failure_while_half_open_reopens(clock, service):
    record_failure(service)
    record_failure(service)
    clock["ms"] += 10_000
    is_circuit_open(service)

    with pytest.raises(RuntimeError):
        call_with_circuit_breaker(service, boom)
    assert get_circuit_status(service)["state"] == OPEN


def test_failed_call_reraises_even_with_fallback(clock, service):
    with pytest.raises(RuntimeError):
        call_with_circuit_breaker(service, boom, fallback=lambda: "template")
    assert get_circuit_status(service)["failures"] == 1


def test_ai_circuit_is_preconfigured(clock):
    for _ in range(2):
        record_failure(AI_SERVICE)
    assert not is_circuit_open(AI_SERVICE)
    record_failure(AI_SERVICE)
    assert is_circuit_open(AI_SERVICE)

    clock["ms"] += 59_999
    assert is_circuit_open(AI_SERVICE)
    clock["ms"] += 1
    assert not is_circuit_open(AI_SERVICE)


def test_reset_and_all_statuses(clock, service):
    record_failure(service)
    record_failure(service)
    reset_circuit(service)

    statuses = get_all_circuit_statuses()
    assert statuses[service]["state"] == CLOSED
    assert AI_SERVICE in statuses
