"""Runtime configuration: defaults, optional YAML file, then environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .cep import is_valid_cep, normalize_cep

_ENV_KEYS: dict[str, str] = {
    "host": "HOST",
    "port": "PORT",
    "timeout_ms": "CEP_TIMEOUT_MS",
    "health_test_cep": "HEALTH_TEST_CEP",
    "user_agent": "CEP_USER_AGENT",
}


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3004
    timeout_ms: int = 5000
    health_test_cep: str = "01001000"
    user_agent: str = "busca-cep-api/2.0"


def _as_int(key: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} deve ser um numero inteiro: {value!r}") from None


def _coerce(raw: Mapping[str, Any]) -> dict[str, Any]:
    known = {field.name for field in fields(Settings)}
    values: dict[str, Any] = {}
    for key, value in raw.items():
        str_key = str(key)
        if str_key not in known:
            raise ValueError(f"Chave de configuracao desconhecida: {str_key}")
        if value is None:
            continue
        if str_key in ("port", "timeout_ms"):
            values[str_key] = _as_int(str_key, value)
        elif str_key == "health_test_cep":
            values[str_key] = normalize_cep(value)
        else:
            values[str_key] = str(value)
    return values


def _load_yaml(path: str | Path) -> dict[str, Any]:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Arquivo de configuracao nao encontrado: {config_path}")

    data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError("O YAML de configuracao deve conter um dicionario")
    return _coerce(data)


def _validate(settings: Settings) -> Settings:
    if settings.timeout_ms <= 0:
        raise ValueError(f"timeout_ms deve ser positivo: {settings.timeout_ms}")
    if not 0 < settings.port < 65536:
        raise ValueError(f"Porta invalida: {settings.port}")
    if not is_valid_cep(settings.health_test_cep):
        raise ValueError(f"CEP de health invalido: {settings.health_test_cep!r}")
    return settings


def load_settings(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Build :class:`Settings`; environment variables override the YAML file."""

    env = os.environ if environ is None else environ
    settings = Settings()
    if config_path:
        settings = replace(settings, **_load_yaml(config_path))

    overrides = {key: env[name] for key, name in _ENV_KEYS.items() if env.get(name)}
    if overrides:
        settings = replace(settings, **_coerce(overrides))
    return _validate(settings)
