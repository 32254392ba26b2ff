from __future__ import annotations

import time

import pytest

from buscacep.deadline import TimeoutController
from buscacep.models import (
    EXHAUSTED,
    Degraded,
    Exhausted,
    ProviderError,
    Resolved,
)
from buscacep.strategies import resolve_all, resolve_fallback, resolve_racing

CEP = "01001000"


@pytest.fixture
def controller() -> TimeoutController:
    return TimeoutController(1.0)


@pytest.mark.parametrize("winner_position", [0, 1, 2])
def test_race_returns_the_successful_provider(make_provider, controller, winner_position) -> None:
    providers = [
        make_provider("a", "not_found", delay=0.01),
        make_provider("b", "failed", delay=0.05),
        make_provider("c", "not_found", delay=0.02),
    ]
    providers[winner_position] = make_provider("winner", "found", delay=0.03)

    outcome = resolve_racing(providers, CEP, controller)

    assert isinstance(outcome, Resolved)
    assert outcome.address.provider == "winner"


def test_race_does_not_wait_for_slow_losers(make_provider) -> None:
    providers = [
        make_provider("slow", "found", delay=5.0),
        make_provider("fast", "found", delay=0.01),
        make_provider("stuck", "hang"),
    ]

    started = time.monotonic()
    outcome = resolve_racing(providers, CEP, TimeoutController(10.0))

    assert isinstance(outcome, Resolved)
    assert outcome.address.provider == "fast"
    assert time.monotonic() - started < 2.0


def test_race_all_not_found_is_exhausted(make_provider, controller) -> None:
    providers = [make_provider(name, "not_found") for name in ("a", "b", "c")]
    assert resolve_racing(providers, CEP, controller) == EXHAUSTED


def test_race_mixed_failures_are_degraded_in_declaration_order(make_provider, controller) -> None:
    providers = [
        make_provider("a", "failed", delay=0.05, reason="status inesperado HTTP 500"),
        make_provider("b", "not_found"),
        make_provider("c", "failed", reason="erro de conexao: refused"),
    ]

    outcome = resolve_racing(providers, CEP, controller)

    assert outcome == Degraded(
        (
            ProviderError("a", "status inesperado HTTP 500"),
            ProviderError("c", "erro de conexao: refused"),
        )
    )


def test_race_timeout_counts_as_failure(make_provider) -> None:
    providers = [make_provider("a", "hang"), make_provider("b", "not_found")]

    started = time.monotonic()
    outcome = resolve_racing(providers, CEP, TimeoutController(0.2))

    assert outcome == Degraded((ProviderError("a", "timeout"),))
    assert time.monotonic() - started < 1.5


def test_fallback_stops_at_first_found(make_provider, controller) -> None:
    a = make_provider("a", "not_found")
    b = make_provider("b", "found")
    c = make_provider("c", "found")

    outcome = resolve_fallback([a, b, c], CEP, controller)

    assert isinstance(outcome, Resolved)
    assert outcome.address.provider == "b"
    assert a.calls == [CEP]
    assert b.calls == [CEP]
    assert c.calls == []


def test_fallback_failure_then_not_found_is_degraded(make_provider) -> None:
    providers = [make_provider("a", "hang"), make_provider("b", "not_found")]

    outcome = resolve_fallback(providers, CEP, TimeoutController(0.2))

    assert outcome == Degraded((ProviderError("a", "timeout"),))
    assert not isinstance(outcome, Exhausted)


def test_fallback_continues_after_failure(make_provider, controller) -> None:
    providers = [make_provider("a", "failed"), make_provider("b", "found")]

    outcome = resolve_fallback(providers, CEP, controller)

    assert isinstance(outcome, Resolved)
    assert outcome.address.provider == "b"


def test_fallback_all_not_found_is_exhausted(make_provider, controller) -> None:
    providers = [make_provider(name, "not_found") for name in ("a", "b")]
    assert resolve_fallback(providers, CEP, controller) == EXHAUSTED


def test_fan_out_keeps_declaration_order(make_provider, controller) -> None:
    providers = [
        make_provider("slowest", "found", delay=0.15),
        make_provider("middle", "not_found", delay=0.08),
        make_provider("fastest", "failed", delay=0.0, reason="status inesperado HTTP 503"),
    ]

    report = resolve_all(providers, CEP, controller)

    assert [entry.provider for entry in report] == ["slowest", "middle", "fastest"]
    found, not_found, failed = report
    assert found.ok and found.data is not None and found.error is None
    assert found.elapsed_ms >= 100
    assert not not_found.ok and not_found.data is None
    assert not_found.error == "CEP nao encontrado no provedor"
    assert not failed.ok and failed.error == "status inesperado HTTP 503"


def test_fan_out_reports_timeouts(make_provider) -> None:
    providers = [make_provider("stuck", "hang"), make_provider("ok", "found")]

    started = time.monotonic()
    report = resolve_all(providers, CEP, TimeoutController(0.2))

    assert len(report) == 2
    assert report[0].error == "timeout"
    assert report[0].elapsed_ms >= 150
    assert report[1].ok
    assert time.monotonic() - started < 1.5
