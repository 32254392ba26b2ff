from __future__ import annotations

import pytest

from buscacep.cep import CepValidationError
from buscacep.config import Settings
from buscacep.models import Exhausted, Resolved
from buscacep.resolver import CepResolver


def test_requires_at_least_one_provider() -> None:
    with pytest.raises(ValueError):
        CepResolver([])


def test_rejects_invalid_health_cep(make_provider) -> None:
    with pytest.raises(CepValidationError):
        CepResolver([make_provider("a", "found")], health_test_cep="abc")


@pytest.mark.parametrize("method", ["resolve_racing", "resolve_fallback", "resolve_all"])
def test_invalid_cep_never_reaches_providers(make_provider, method) -> None:
    provider = make_provider("a", "found")
    resolver = CepResolver([provider], timeout=1.0)

    with pytest.raises(CepValidationError):
        getattr(resolver, method)("0100-100")

    assert provider.calls == []


def test_punctuated_input_is_normalised(make_provider) -> None:
    provider = make_provider("a", "found")
    resolver = CepResolver([provider], timeout=1.0)

    outcome = resolver.resolve_racing("01001-000")

    assert isinstance(outcome, Resolved)
    assert provider.calls == ["01001000"]


def test_strategies_share_the_provider_set(make_provider) -> None:
    resolver = CepResolver(
        [make_provider("a", "not_found"), make_provider("b", "not_found")], timeout=1.0
    )

    assert resolver.provider_names == ("a", "b")
    assert isinstance(resolver.resolve_racing("01001000"), Exhausted)
    assert isinstance(resolver.resolve_fallback("01001000"), Exhausted)
    assert len(resolver.resolve_all("01001000")) == 2


def test_probe_uses_configured_cep_by_default(make_provider) -> None:
    provider = make_provider("a", "found")
    resolver = CepResolver([provider], timeout=1.0, health_test_cep="20040-020")

    report = resolver.probe_health()

    assert report.cep == "20040020"
    assert provider.calls == ["20040020"]


def test_from_settings_builds_default_providers() -> None:
    resolver = CepResolver.from_settings(
        Settings(timeout_ms=1500, health_test_cep="20040020", user_agent="ua/1.0")
    )

    assert resolver.provider_names == ("viacep", "brasilapi", "awesomeapi")
    assert resolver.controller.timeout == pytest.approx(1.5)
    assert resolver.health_test_cep == "20040020"
