from __future__ import annotations

from collections.abc import Callable

import pytest

from buscacep.deadline import Deadline
from buscacep.models import NOT_FOUND, Failed, Found, NormalizedAddress, ProviderOutcome


class StubProvider:
    """Provider with a scripted outcome and delay that honours cancellation."""

    def __init__(self, name: str, outcome: ProviderOutcome | None, delay: float = 0.0) -> None:
        self.name = name
        self.outcome = outcome
        self.delay = delay
        self.calls: list[str] = []

    def call(self, cep: str, deadline: Deadline) -> ProviderOutcome:
        self.calls.append(cep)
        if deadline.wait(self.delay):
            return Failed("timeout")
        if self.outcome is None:
            # Never answers: wait until the controller gives up.
            deadline.wait(30.0)
            return Failed("timeout")
        return self.outcome

    def diagnostic_url(self, cep: str) -> str:
        return f"https://stub.example/{self.name}/{cep}"


def address(provider: str, code: str = "01001000", street: str = "Praca da Se") -> NormalizedAddress:
    return NormalizedAddress(code=code, provider=provider, street=street, city="Sao Paulo", region="SP")


@pytest.fixture
def make_provider() -> Callable[..., StubProvider]:
    def _make(name: str, kind: str, delay: float = 0.0, reason: str = "HTTP 500") -> StubProvider:
        outcomes: dict[str, ProviderOutcome | None] = {
            "found": Found(address(name)),
            "not_found": NOT_FOUND,
            "failed": Failed(reason),
            "hang": None,
        }
        return StubProvider(name, outcomes[kind], delay)

    return _make
