"""Health probe over all configured providers."""

from __future__ import annotations

from collections.abc import Sequence

from .cep import require_cep
from .deadline import TimeoutController
from .models import HealthReport
from .providers.base import Provider
from .strategies import resolve_all
from .utils.logging_setup import setup_logger

_BASE_LOGGER = setup_logger()
LOGGER = _BASE_LOGGER.getChild("health")

DEFAULT_HEALTH_TEST_CEP = "01001000"


def probe_health(
    providers: Sequence[Provider],
    test_cep: str,
    controller: TimeoutController,
) -> HealthReport:
    """Fan out *test_cep* to every provider; healthy only if all of them found it.

    Raises :class:`~buscacep.cep.CepValidationError` before any network call
    when *test_cep* is not a valid CEP.
    """

    cep = require_cep(test_cep)
    report = resolve_all(providers, cep, controller)
    verdict = "healthy" if all(entry.ok for entry in report) else "degraded"
    if verdict == "degraded":
        LOGGER.warning(
            "Health degradado: %s",
            ", ".join(f"{entry.provider}={entry.error}" for entry in report if not entry.ok),
        )
    return HealthReport(
        cep=cep,
        verdict=verdict,
        report=report,
        urls=tuple(provider.diagnostic_url(cep) for provider in providers),
    )
