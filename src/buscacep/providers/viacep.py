"""ViaCEP provider implementation."""

from __future__ import annotations

from typing import Any

from ..models import NormalizedAddress
from .base import HttpProvider, text


class ViaCepProvider(HttpProvider):
    """ViaCEP answers HTTP 200 with ``{"erro": true}`` for unknown CEPs."""

    name = "viacep"
    url_template = "https://viacep.com.br/ws/{cep}/json/"

    def _signals_not_found(self, payload: dict[str, Any]) -> bool:
        flag = payload.get("erro")
        return flag is True or str(flag).strip().lower() == "true"

    def _to_address(self, cep: str, payload: dict[str, Any]) -> NormalizedAddress:
        return NormalizedAddress.build(
            requested=cep,
            provider=self.name,
            upstream_code=payload.get("cep"),
            street=text(payload.get("logradouro")),
            complement=text(payload.get("complemento")),
            district=text(payload.get("bairro")),
            city=text(payload.get("localidade")),
            region=text(payload.get("uf")),
            city_code=text(payload.get("ibge")),
            state_tax_code=text(payload.get("gia")),
            area_code=text(payload.get("ddd")),
            tax_office_code=text(payload.get("siafi")),
        )
