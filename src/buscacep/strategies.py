"""Resolution strategies combining the outcomes of several providers.

All three strategies take an already-normalised CEP. Concurrent strategies
start every provider at once on a request-scoped pool; each call is bounded by
the :class:`~buscacep.deadline.TimeoutController` deadline.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import FIRST_COMPLETED, wait

from .deadline import PendingCall, TimeoutController, call_pool
from .models import (
    EXHAUSTED,
    Degraded,
    FanOutEntry,
    FanOutReport,
    Failed,
    Found,
    NotFound,
    ProviderError,
    ProviderOutcome,
    Resolved,
    ResolutionOutcome,
)
from .providers.base import Provider
from .utils.logging_setup import setup_logger

_BASE_LOGGER = setup_logger()
LOGGER = _BASE_LOGGER.getChild("strategies")


def _aggregate(providers: Sequence[Provider], outcomes: Sequence[ProviderOutcome]) -> ResolutionOutcome:
    """Reduce unsuccessful outcomes (declaration order) to Exhausted or Degraded."""

    errors = tuple(
        ProviderError(provider.name, outcome.reason)
        for provider, outcome in zip(providers, outcomes)
        if isinstance(outcome, Failed)
    )
    not_found = sum(1 for outcome in outcomes if isinstance(outcome, NotFound))
    if not_found == len(providers):
        return EXHAUSTED
    return Degraded(errors)


def resolve_racing(
    providers: Sequence[Provider], cep: str, controller: TimeoutController
) -> ResolutionOutcome:
    """First ``Found`` wins; remaining calls are abandoned without waiting."""

    outcomes: dict[int, ProviderOutcome] = {}
    with call_pool(len(providers)) as executor:
        pending: dict[object, PendingCall] = {}
        for index, provider in enumerate(providers):
            call = controller.start(executor, provider, cep, index)
            pending[call.future] = call

        while pending:
            budget = max(call.deadline.remaining() for call in pending.values())
            done, _ = wait(list(pending), timeout=budget, return_when=FIRST_COMPLETED)
            if not done:
                # Every remaining deadline has elapsed.
                for call in pending.values():
                    outcomes[call.index] = call.settle().outcome
                break

            for future in done:
                call = pending.pop(future)
                outcome = call.settle().outcome
                if isinstance(outcome, Found):
                    for loser in pending.values():
                        loser.abandon()
                    LOGGER.debug("CEP %s resolvido por %s", cep, call.provider.name)
                    return Resolved(outcome.address)
                outcomes[call.index] = outcome

    return _aggregate(providers, [outcomes[index] for index in range(len(providers))])


def resolve_fallback(
    providers: Sequence[Provider], cep: str, controller: TimeoutController
) -> ResolutionOutcome:
    """Ask providers one at a time, in priority order, until one finds the CEP."""

    not_found = 0
    errors: list[ProviderError] = []
    with call_pool(len(providers)) as executor:
        for index, provider in enumerate(providers):
            outcome = controller.start(executor, provider, cep, index).settle().outcome
            if isinstance(outcome, Found):
                LOGGER.debug("CEP %s resolvido por %s", cep, provider.name)
                return Resolved(outcome.address)
            if isinstance(outcome, NotFound):
                not_found += 1
                continue
            errors.append(ProviderError(provider.name, outcome.reason))

    if not_found == len(providers):
        return EXHAUSTED
    return Degraded(tuple(errors))


def resolve_all(
    providers: Sequence[Provider], cep: str, controller: TimeoutController
) -> FanOutReport:
    """Query every provider concurrently; one entry per provider, in declaration order."""

    with call_pool(len(providers)) as executor:
        calls = [
            controller.start(executor, provider, cep, index)
            for index, provider in enumerate(providers)
        ]
        entries = []
        for call in calls:
            settled = call.settle()
            entries.append(
                FanOutEntry.from_outcome(call.provider.name, settled.outcome, settled.elapsed_ms)
            )
    return tuple(entries)
