"""
Circuit Breaker - stop calling an external service that keeps failing.

States:
- CLOSED: calls go through, failures are counted
- OPEN: calls are blocked until ``reset_timeout_ms`` has passed
- HALF_OPEN: trial calls go through; ``success_threshold`` successes close
  the circuit again, a single failure reopens it

Usage:
    result = call_with_circuit_breaker("ai", lambda: client.generate(prompt),
                                       fallback=lambda: template_letter())
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from hireall.core.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)

CLOSED = "CLOSED"
OPEN = "OPEN"
HALF_OPEN = "HALF_OPEN"


@dataclass
class CircuitConfig:
    failure_threshold: int = 5
    reset_timeout_ms: int = 30000
    success_threshold: int = 2


@dataclass
class CircuitState:
    state: str = CLOSED
    failures: int = 0
    successes: int = 0
    last_failure_time: int = 0


class CircuitOpenError(ServiceUnavailableError):
    def __init__(self, service: str, retry_after: Optional[int] = None):
        self.service = service
        super().__init__(
            f"Service {service} is temporarily unavailable",
            retry_after=retry_after,
        )


_circuits: Dict[str, CircuitState] = {}
_configs: Dict[str, CircuitConfig] = {}
_lock = threading.RLock()


def _now_ms() -> int:
    return int(time.time() * 1000)


def configure_circuit(service: str, **options) -> CircuitConfig:
    """Set thresholds for a service. Unspecified options keep their defaults."""
    with _lock:
        config = CircuitConfig(**options)
        _configs[service] = config
        return config


def _config(service: str) -> CircuitConfig:
    return _configs.get(service) or CircuitConfig()


def _circuit(service: str) -> CircuitState:
    circuit = _circuits.get(service)
    if circuit is None:
        circuit = _circuits[service] = CircuitState()
    return circuit


def is_circuit_open(service: str) -> bool:
    with _lock:
        circuit = _circuit(service)
        if circuit.state == OPEN:
            elapsed = _now_ms() - circuit.last_failure_time
            if elapsed >= _config(service).reset_timeout_ms:
                circuit.state = HALF_OPEN
                circuit.successes = 0
                logger.info("Circuit %s half-open, allowing trial calls", service)
                return False
            return True
        return False


def record_success(service: str) -> None:
    with _lock:
        circuit = _circuit(service)
        if circuit.state == HALF_OPEN:
            circuit.successes += 1
            if circuit.successes >= _config(service).success_threshold:
                circuit.state = CLOSED
                circuit.failures = 0
                circuit.successes = 0
                logger.info("Circuit %s closed", service)
        elif circuit.state == CLOSED:
            circuit.failures = 0


def record_failure(service: str) -> None:
    with _lock:
        circuit = _circuit(service)
        circuit.failures += 1
        circuit.last_failure_time = _now_ms()

        if circuit.state == HALF_OPEN:
            circuit.state = OPEN
            circuit.successes = 0
            logger.warning("Circuit %s reopened after failed trial call", service)
        elif circuit.state == CLOSED and circuit.failures >= _config(service).failure_threshold:
            circuit.state = OPEN
            logger.warning("Circuit %s opened after %d failures", service, circuit.failures)


def _retry_after_seconds(service: str) -> int:
    circuit = _circuit(service)
    remaining = _config(service).reset_timeout_ms - (_now_ms() - circuit.last_failure_time)
    return max(1, remaining // 1000)


def call_with_circuit_breaker(
    service: str,
    fn: Callable[[], Any],
    fallback: Optional[Callable[[], Any]] = None,
) -> Any:
    """Run ``fn`` through the breaker for ``service``.

    ``fallback`` only stands in for calls blocked by an open circuit.
    Exceptions from ``fn`` are recorded and re-raised.
    """
    if is_circuit_open(service):
        if fallback is not None:
            logger.info("Circuit %s open, using fallback", service)
            return fallback()
        with _lock:
            retry_after = _retry_after_seconds(service)
        raise CircuitOpenError(service, retry_after=retry_after)

    try:
        result = fn()
    except Exception:
        record_failure(service)
        raise

    record_success(service)
    return result


def get_circuit_status(service: str) -> Dict[str, Any]:
    with _lock:
        circuit = _circuit(service)
        return {
            "service": service,
            "state": circuit.state,
            "failures": circuit.failures,
            "successes": circuit.successes,
            "last_failure_time": circuit.last_failure_time or None,
        }


def get_all_circuit_statuses() -> Dict[str, Dict[str, Any]]:
    with _lock:
        names = set(_circuits) | set(_configs)
        return {name: get_circuit_status(name) for name in sorted(names)}


def reset_circuit(service: str) -> None:
    with _lock:
        _circuits[service] = CircuitState()


def reset_all_circuits() -> None:
    with _lock:
        _circuits.clear()


# Pre-configured services
AI_SERVICE = "ai"
configure_circuit(AI_SERVICE, failure_threshold=3, reset_timeout_ms=60000)
