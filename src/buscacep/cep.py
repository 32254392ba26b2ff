"""Normalização e validação de CEPs."""

from __future__ import annotations

import re
from typing import Final

_NON_DIGITS: Final = re.compile(r"[^0-9]")
_CEP_PATTERN: Final = re.compile(r"[0-9]{8}")


class CepValidationError(ValueError):
    """Raised when an identifier does not normalise to exactly 8 digits."""

    def __init__(self, raw: object) -> None:
        super().__init__(f"CEP invalido: {raw!r}. Use 8 digitos, exemplo: 01001000")
        self.raw = raw


def normalize_cep(raw: object) -> str:
    """Strip every non-digit character. Never fails; ``None`` becomes ``""``."""

    if raw is None:
        return ""
    return _NON_DIGITS.sub("", str(raw))


def is_valid_cep(normalized: str) -> bool:
    return bool(_CEP_PATTERN.fullmatch(normalized))


def require_cep(raw: object) -> str:
    """Return the normalised CEP or raise :class:`CepValidationError`."""

    normalized = normalize_cep(raw)
    if not is_valid_cep(normalized):
        raise CepValidationError(raw)
    return normalized
