import pytest

from lineserver.core.admission import AdmissionController
from lineserver.core.errors import TooManyRequests


def test_first_hundred_calls_admitted_then_rejected(clock):
    controller = AdmissionController(window_ms=60000, max_requests=100, clock=clock)

    for _ in range(100):
        controller.admit("10.0.0.1")

    with pytest.raises(TooManyRequests) as exc:
        controller.admit("10.0.0.1")
    assert exc.value.retry_after == 60


def test_rejection_lasts_until_window_ends(clock):
    controller = AdmissionController(window_ms=1000, max_requests=2, clock=clock)
    controller.admit("k")
    controller.admit("k")

    clock.advance(1000)
    with pytest.raises(TooManyRequests):
        controller.admit("k")

    clock.advance(1)
    controller.admit("k")
    controller.admit("k")


def test_keys_are_counted_separately(clock):
    controller = AdmissionController(window_ms=1000, max_requests=1, clock=clock)
    controller.admit("a")
    controller.admit("b")

    with pytest.raises(TooManyRequests):
        controller.admit("a")


def test_sweep_removes_only_expired_records(clock):
    controller = AdmissionController(window_ms=1000, max_requests=5, clock=clock)
    controller.admit("old")
    clock.advance(600)
    controller.admit("new")
    clock.advance(500)

    assert controller.sweep() == 1
    assert len(controller) == 1
