"""AwesomeAPI CEP provider implementation."""

from __future__ import annotations

from typing import Any

from ..models import NormalizedAddress
from .base import HttpProvider, text


class AwesomeApiProvider(HttpProvider):
    """AwesomeAPI reports unknown CEPs via HTTP 404 or ``"status": 404`` in the body."""

    name = "awesomeapi"
    url_template = "https://cep.awesomeapi.com.br/json/{cep}"
    not_found_statuses = frozenset({404})

    def _signals_not_found(self, payload: dict[str, Any]) -> bool:
        return str(payload.get("status", "")).strip() == "404"

    def _to_address(self, cep: str, payload: dict[str, Any]) -> NormalizedAddress:
        return NormalizedAddress.build(
            requested=cep,
            provider=self.name,
            upstream_code=payload.get("cep"),
            street=text(payload.get("address_name")),
            complement=text(payload.get("address_type")),
            district=text(payload.get("district")),
            city=text(payload.get("city")),
            region=text(payload.get("state")),
            city_code=text(payload.get("city_ibge")),
            area_code=text(payload.get("ddd")),
        )
