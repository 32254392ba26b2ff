"""Implementações dos provedores de CEP."""

from __future__ import annotations

from .awesomeapi import AwesomeApiProvider
from .base import DEFAULT_USER_AGENT, HttpProvider, Provider
from .brasilapi import BrasilApiProvider
from .viacep import ViaCepProvider


def default_providers(user_agent: str = DEFAULT_USER_AGENT) -> tuple[Provider, ...]:
    """The fixed provider set, in fallback priority order."""

    return (
        ViaCepProvider(user_agent=user_agent),
        BrasilApiProvider(user_agent=user_agent),
        AwesomeApiProvider(user_agent=user_agent),
    )


__all__ = [
    "AwesomeApiProvider",
    "BrasilApiProvider",
    "DEFAULT_USER_AGENT",
    "HttpProvider",
    "Provider",
    "ViaCepProvider",
    "default_providers",
]
