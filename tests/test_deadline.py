from __future__ import annotations

import time

import pytest

from buscacep.deadline import Deadline, TimeoutController, call_pool
from buscacep.models import Failed, Found

from conftest import StubProvider


def test_deadline_remaining_and_cancel_callbacks() -> None:
    deadline = Deadline(10.0)
    fired: list[str] = []
    deadline.on_cancel(lambda: fired.append("first"))

    assert 9.0 < deadline.remaining() <= 10.0
    assert not deadline.expired

    deadline.cancel()
    deadline.cancel()

    assert deadline.cancelled
    assert deadline.expired
    assert fired == ["first"]

    deadline.on_cancel(lambda: fired.append("late"))
    assert fired == ["first", "late"]


def test_failing_cancel_callback_does_not_propagate() -> None:
    deadline = Deadline(1.0)

    def _boom() -> None:
        raise OSError("socket already closed")

    deadline.on_cancel(_boom)
    deadline.cancel()

    assert deadline.cancelled


def test_controller_rejects_non_positive_timeout() -> None:
    with pytest.raises(ValueError):
        TimeoutController(0)


def test_hanging_call_times_out_within_bound(make_provider) -> None:
    provider = make_provider("slow", "hang")
    controller = TimeoutController(0.2)

    started = time.monotonic()
    with call_pool(1) as executor:
        pending = controller.start(executor, provider, "01001000")
        settled = pending.settle()
    elapsed = time.monotonic() - started

    assert settled.outcome == Failed("timeout")
    assert elapsed < 1.0
    assert pending.deadline.cancelled


def test_completed_call_reports_outcome_and_elapsed(make_provider) -> None:
    provider = make_provider("quick", "found", delay=0.05)
    with call_pool(1) as executor:
        settled = TimeoutController(2.0).start(executor, provider, "01001000").settle()

    assert isinstance(settled.outcome, Found)
    assert settled.elapsed_ms >= 40


def test_exception_escaping_provider_becomes_failure() -> None:
    class _Broken(StubProvider):
        def call(self, cep, deadline):
            raise KeyError("boom")

    with call_pool(1) as executor:
        settled = TimeoutController(1.0).start(executor, _Broken("broken", None), "01001000").settle()

    assert isinstance(settled.outcome, Failed)
    assert settled.outcome.reason.startswith("erro inesperado")
