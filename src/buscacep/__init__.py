"""Exportações centrais do pacote ``buscacep``."""

from .cep import CepValidationError, is_valid_cep, normalize_cep, require_cep
from .config import Settings, load_settings
from .deadline import DEFAULT_TIMEOUT, Deadline, TimeoutController
from .models import (
    Degraded,
    Exhausted,
    Failed,
    FanOutEntry,
    FanOutReport,
    Found,
    HealthReport,
    NormalizedAddress,
    NotFound,
    ProviderError,
    ProviderOutcome,
    Resolved,
    ResolutionOutcome,
)
from .resolver import CepResolver
from .utils.logging_setup import setup_logger

__all__ = [
    "CepResolver",
    "CepValidationError",
    "DEFAULT_TIMEOUT",
    "Deadline",
    "Degraded",
    "Exhausted",
    "Failed",
    "FanOutEntry",
    "FanOutReport",
    "Found",
    "HealthReport",
    "NormalizedAddress",
    "NotFound",
    "ProviderError",
    "ProviderOutcome",
    "Resolved",
    "ResolutionOutcome",
    "Settings",
    "TimeoutController",
    "is_valid_cep",
    "load_settings",
    "normalize_cep",
    "require_cep",
    "setup_logger",
]
