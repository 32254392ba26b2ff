"""Provider base interfaces and the shared HTTP adapter."""

from __future__ import annotations

from typing import Any, ClassVar, Final, Protocol

import requests
from requests import Response

from ..deadline import TIMEOUT_REASON, Deadline
from ..models import NOT_FOUND, Failed, Found, NormalizedAddress, ProviderOutcome
from ..utils.logging_setup import setup_logger

_BASE_LOGGER = setup_logger()
LOGGER = _BASE_LOGGER.getChild("providers")

DEFAULT_USER_AGENT: Final = "busca-cep-api/2.0"


class Provider(Protocol):
    """Protocol defining one upstream CEP lookup service."""

    name: str

    def call(self, cep: str, deadline: Deadline) -> ProviderOutcome:
        """Look up *cep*; every path ends in ``Found``, ``NotFound`` or ``Failed``."""

        ...

    def diagnostic_url(self, cep: str) -> str:
        ...


def text(value: object) -> str | None:
    """Map an upstream field to ``str`` with empty values treated as absent."""

    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None


class HttpProvider:
    """Base class for JSON-over-HTTP providers.

    Subclasses set ``name``, ``url_template`` and optionally
    ``not_found_statuses``, then implement :meth:`_to_address` and, where the
    service signals "not found" inside a successful body, :meth:`_signals_not_found`.
    """

    name: ClassVar[str] = ""
    url_template: ClassVar[str] = ""
    not_found_statuses: ClassVar[frozenset[int]] = frozenset()

    def __init__(self, *, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self._headers = {"User-Agent": user_agent, "Accept": "application/json"}

    def diagnostic_url(self, cep: str) -> str:
        return self.url_template.format(cep=cep)

    def call(self, cep: str, deadline: Deadline) -> ProviderOutcome:
        url = self.diagnostic_url(cep)
        remaining = deadline.remaining()
        if deadline.cancelled or remaining <= 0:
            return Failed(TIMEOUT_REASON)

        LOGGER.debug("Consultando %s: %s", self.name, url)
        session = requests.Session()
        deadline.on_cancel(session.close)
        try:
            response = session.get(url, headers=self._headers, timeout=remaining)
        except requests.Timeout:
            LOGGER.warning("%s: timeout apos %.1fs", self.name, deadline.seconds)
            return Failed(TIMEOUT_REASON)
        except requests.RequestException as exc:
            if deadline.cancelled:
                return Failed(TIMEOUT_REASON)
            LOGGER.warning("%s: erro de conexao: %s", self.name, exc)
            return Failed(f"erro de conexao: {exc}")
        finally:
            session.close()

        return self._interpret(cep, response)

    def _interpret(self, cep: str, response: Response) -> ProviderOutcome:
        status = response.status_code
        if status in self.not_found_statuses:
            LOGGER.debug("%s: CEP %s nao encontrado (HTTP %s)", self.name, cep, status)
            return NOT_FOUND

        if not 200 <= status < 300:
            LOGGER.warning("%s: status inesperado HTTP %s", self.name, status)
            return Failed(f"status inesperado HTTP {status}")

        try:
            payload = response.json()
        except ValueError:
            LOGGER.warning("%s: resposta JSON invalida", self.name)
            return Failed("resposta JSON invalida")

        if not isinstance(payload, dict):
            LOGGER.warning("%s: resposta em formato inesperado: %s", self.name, type(payload))
            return Failed("resposta em formato inesperado")

        if self._signals_not_found(payload):
            LOGGER.debug("%s: CEP %s nao encontrado", self.name, cep)
            return NOT_FOUND

        try:
            address = self._to_address(cep, payload)
        except (AttributeError, TypeError, ValueError) as exc:
            LOGGER.warning("%s: payload nao mapeavel: %s", self.name, exc)
            return Failed("resposta em formato inesperado")
        return Found(address)

    def _signals_not_found(self, payload: dict[str, Any]) -> bool:
        return False

    def _to_address(self, cep: str, payload: dict[str, Any]) -> NormalizedAddress:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
