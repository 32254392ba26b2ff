"""Value types shared by providers, strategies and the transport layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from .cep import is_valid_cep, normalize_cep

NOT_FOUND_MESSAGE = "CEP nao encontrado no provedor"


@dataclass(frozen=True)
class NormalizedAddress:
    code: str
    provider: str
    street: str | None = None
    complement: str | None = None
    district: str | None = None
    city: str | None = None
    region: str | None = None
    city_code: str | None = None
    state_tax_code: str | None = None
    area_code: str | None = None
    tax_office_code: str | None = None

    @classmethod
    def build(
        cls,
        *,
        requested: str,
        provider: str,
        upstream_code: object = None,
        **fields: str | None,
    ) -> NormalizedAddress:
        """Create an address whose ``code`` is always the 8-digit form.

        The upstream code wins when it normalises cleanly, otherwise the
        requested code is used.
        """

        code = normalize_cep(upstream_code)
        if not is_valid_cep(code):
            code = requested
        return cls(code=code, provider=provider, **fields)

    def to_dict(self) -> dict[str, str | None]:
        return {
            "cep": self.code,
            "logradouro": self.street,
            "complemento": self.complement,
            "bairro": self.district,
            "localidade": self.city,
            "uf": self.region,
            "ibge": self.city_code,
            "gia": self.state_tax_code,
            "ddd": self.area_code,
            "siafi": self.tax_office_code,
            "provider": self.provider,
        }


# Provider outcomes


@dataclass(frozen=True)
class Found:
    address: NormalizedAddress


@dataclass(frozen=True)
class NotFound:
    pass


@dataclass(frozen=True)
class Failed:
    reason: str


ProviderOutcome = Found | NotFound | Failed

NOT_FOUND = NotFound()


# Resolution outcomes


@dataclass(frozen=True)
class ProviderError:
    provider: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"provider": self.provider, "reason": self.reason}


@dataclass(frozen=True)
class Resolved:
    address: NormalizedAddress


@dataclass(frozen=True)
class Exhausted:
    """Every provider answered that the CEP does not exist."""


@dataclass(frozen=True)
class Degraded:
    """At least one provider failed, so no consensus was reached."""

    errors: tuple[ProviderError, ...]


ResolutionOutcome = Resolved | Exhausted | Degraded

EXHAUSTED = Exhausted()


@dataclass(frozen=True)
class FanOutEntry:
    provider: str
    ok: bool
    data: NormalizedAddress | None
    error: str | None
    elapsed_ms: int

    @classmethod
    def from_outcome(cls, provider: str, outcome: ProviderOutcome, elapsed_ms: int) -> FanOutEntry:
        if isinstance(outcome, Found):
            return cls(provider, True, outcome.address, None, elapsed_ms)
        if isinstance(outcome, NotFound):
            return cls(provider, False, None, NOT_FOUND_MESSAGE, elapsed_ms)
        return cls(provider, False, None, outcome.reason, elapsed_ms)

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "ok": self.ok,
            "data": self.data.to_dict() if self.data else None,
            "error": self.error,
            "responseTimeMs": self.elapsed_ms,
        }


FanOutReport = tuple[FanOutEntry, ...]

HealthVerdict = Literal["healthy", "degraded"]


@dataclass(frozen=True)
class HealthReport:
    cep: str
    verdict: HealthVerdict
    report: FanOutReport
    urls: tuple[str, ...]

    @property
    def healthy(self) -> bool:
        return self.verdict == "healthy"

    def to_dict(self) -> dict[str, Any]:
        providers = []
        for entry, url in zip(self.report, self.urls):
            item = entry.to_dict()
            item["url"] = url
            providers.append(item)
        return {"status": self.verdict, "cepTest": self.cep, "providers": providers}
