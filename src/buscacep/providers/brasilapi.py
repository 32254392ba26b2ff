"""BrasilAPI provider implementation."""

from __future__ import annotations

from typing import Any

from ..models import NormalizedAddress
from .base import HttpProvider, text


class BrasilApiProvider(HttpProvider):
    name = "brasilapi"
    url_template = "https://brasilapi.com.br/api/cep/v1/{cep}"
    not_found_statuses = frozenset({404})

    def _to_address(self, cep: str, payload: dict[str, Any]) -> NormalizedAddress:
        return NormalizedAddress.build(
            requested=cep,
            provider=self.name,
            upstream_code=payload.get("cep"),
            street=text(payload.get("street")),
            district=text(payload.get("neighborhood")),
            city=text(payload.get("city")),
            region=text(payload.get("state")),
        )
