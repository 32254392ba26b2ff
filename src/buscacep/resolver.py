"""Entry point of the resolution engine used by the HTTP server and the CLI."""

from __future__ import annotations

from collections.abc import Sequence

from .cep import require_cep
from .config import Settings
from .deadline import DEFAULT_TIMEOUT, TimeoutController
from .health import DEFAULT_HEALTH_TEST_CEP, probe_health
from .models import FanOutReport, HealthReport, ResolutionOutcome
from .providers import Provider, default_providers
from .strategies import resolve_all, resolve_fallback, resolve_racing


class CepResolver:
    """Binds the immutable provider set to the three strategies and the probe.

    Every method accepts a raw CEP and raises
    :class:`~buscacep.cep.CepValidationError` before touching the network when
    it does not normalise to 8 digits.
    """

    def __init__(
        self,
        providers: Sequence[Provider] | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        health_test_cep: str = DEFAULT_HEALTH_TEST_CEP,
    ) -> None:
        self.providers: tuple[Provider, ...] = (
            tuple(providers) if providers is not None else default_providers()
        )
        if not self.providers:
            raise ValueError("Pelo menos um provedor deve ser configurado")
        self.controller = TimeoutController(timeout)
        self.health_test_cep = require_cep(health_test_cep)

    @classmethod
    def from_settings(cls, settings: Settings) -> CepResolver:
        return cls(
            default_providers(user_agent=settings.user_agent),
            timeout=settings.timeout_ms / 1000,
            health_test_cep=settings.health_test_cep,
        )

    @property
    def provider_names(self) -> tuple[str, ...]:
        return tuple(provider.name for provider in self.providers)

    def resolve_racing(self, cep: str) -> ResolutionOutcome:
        return resolve_racing(self.providers, require_cep(cep), self.controller)

    def resolve_fallback(self, cep: str) -> ResolutionOutcome:
        return resolve_fallback(self.providers, require_cep(cep), self.controller)

    def resolve_all(self, cep: str) -> FanOutReport:
        return resolve_all(self.providers, require_cep(cep), self.controller)

    def probe_health(self, test_cep: str | None = None) -> HealthReport:
        return probe_health(
            self.providers,
            self.health_test_cep if test_cep is None else test_cep,
            self.controller,
        )
