"""Manual smoke test against the live CEP providers (not collected by pytest)."""

from __future__ import annotations

import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from buscacep import CepResolver, load_settings


def main() -> int:
    dotenv_path = Path(".env")
    if dotenv_path.exists():
        load_dotenv(dotenv_path=dotenv_path)

    try:
        settings = load_settings()
    except ValueError as exc:
        print(f"Configuracao incompleta: {exc}", file=sys.stderr)
        return 2

    resolver = CepResolver.from_settings(settings)
    cep = sys.argv[1] if len(sys.argv) > 1 else settings.health_test_cep

    report = resolver.probe_health(cep)
    print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))

    return 0 if report.healthy else 1


if __name__ == "__main__":
    sys.exit(main())
