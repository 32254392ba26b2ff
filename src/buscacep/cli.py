"""Command line entry point for the CEP resolution engine."""

from __future__ import annotations

import argparse
import json
import logging
import time
from collections.abc import Callable, Mapping, MutableMapping, Sequence
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from . import excel_io
from .cep import CepValidationError
from .config import Settings, load_settings
from .models import Degraded, Exhausted, Resolved, ResolutionOutcome
from .resolver import CepResolver
from .utils.logging_setup import setup_logger

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_RESOLVED = 1
EXIT_USAGE = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buscacep", description="Consulta de CEP em multiplos provedores"
    )
    parser.add_argument("--config", help="YAML com as configuracoes (host, port, timeout_ms, ...)")
    parser.add_argument(
        "--verbose", action="store_true", help="Ativar log detalhado"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    lookup = sub.add_parser("lookup", help="Resolver um CEP")
    lookup.add_argument("cep")
    _add_resolution_flags(lookup)

    multiple = sub.add_parser("multiple", help="Consultar todos os provedores e listar cada resposta")
    multiple.add_argument("cep")

    health = sub.add_parser("health", help="Verificar a saude dos provedores")
    health.add_argument("--cep", default=None, help="CEP de teste (padrao: configuracao)")

    serve = sub.add_parser("serve", help="Iniciar o servidor HTTP")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    batch = sub.add_parser("batch", help="Resolver os CEPs de uma planilha Excel")
    batch.add_argument("--excel", required=True, help="Caminho da planilha")
    batch.add_argument("--sheet", default=None, help="Nome da aba (padrao: aba ativa)")
    batch.add_argument("--cep-col", default="A", help="Coluna com o CEP (padrao: A)")
    batch.add_argument("--start", type=int, default=2, help="Linha inicial (1-based). Padrao: 2.")
    batch.add_argument("--end", type=int, help="Linha final (1-based, inclusiva)")
    batch.add_argument(
        "--mapping-yaml", help="YAML com o mapeamento entre campos do endereco e colunas"
    )
    batch.add_argument(
        "--dry-run", action="store_true", help="Somente consultar, sem gravar na planilha"
    )
    _add_resolution_flags(batch)
    return parser


def _add_resolution_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--strategy",
        choices=["race", "fallback"],
        default="race",
        help="race: primeiro provedor que encontrar; fallback: em ordem de prioridade",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=0,
        help="Repetir a consulta inteira ate N vezes enquanto os provedores falharem",
    )


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    setup_logger(level)


def _load_mapping(path: str | None) -> dict[str, str]:
    mapping: MutableMapping[str, str] = dict(excel_io.DEFAULT_MAPPING)
    if not path:
        return dict(mapping)

    mapping_path = Path(path)
    if not mapping_path.exists():
        raise FileNotFoundError(f"Arquivo de mapeamento nao encontrado: {mapping_path}")

    data = yaml.safe_load(mapping_path.read_text(encoding="utf-8"))
    if data is None:
        return dict(mapping)
    if not isinstance(data, Mapping):
        raise ValueError("O YAML de mapeamento deve conter um dicionario")

    for key, value in data.items():
        if value is None:
            mapping.pop(str(key), None)
            continue
        column = excel_io.normalise_column(str(value))
        if column is None:
            continue
        mapping[str(key)] = column

    return dict(mapping)


def _log_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "Provedores indisponiveis, repetindo consulta (tentativa %s)",
        retry_state.attempt_number + 1,
    )


def resolve_with_retries(
    resolve: Callable[[str], ResolutionOutcome], cep: str, retries: int
) -> ResolutionOutcome:
    """Re-issue the whole resolution while it ends ``Degraded``."""

    retrying = Retrying(
        stop=stop_after_attempt(max(0, retries) + 1),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
        retry=retry_if_result(lambda outcome: isinstance(outcome, Degraded)),
        before_sleep=_log_retry,
        retry_error_callback=lambda state: state.outcome.result(),
        reraise=True,
    )
    return retrying(resolve, cep)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _outcome_payload(outcome: ResolutionOutcome) -> tuple[dict[str, Any], int]:
    if isinstance(outcome, Resolved):
        return outcome.address.to_dict(), EXIT_OK
    if isinstance(outcome, Exhausted):
        return {"error": "CEP nao encontrado"}, EXIT_NOT_RESOLVED
    return {
        "error": "Provedores indisponiveis",
        "details": [error.to_dict() for error in outcome.errors],
    }, EXIT_NOT_RESOLVED


def _strategy(resolver: CepResolver, name: str) -> Callable[[str], ResolutionOutcome]:
    return resolver.resolve_fallback if name == "fallback" else resolver.resolve_racing


def _run_lookup(resolver: CepResolver, args: argparse.Namespace) -> int:
    outcome = resolve_with_retries(_strategy(resolver, args.strategy), args.cep, args.retries)
    payload, code = _outcome_payload(outcome)
    _print_json(payload)
    return code


def _run_multiple(resolver: CepResolver, args: argparse.Namespace) -> int:
    report = resolver.resolve_all(args.cep)
    _print_json([entry.to_dict() for entry in report])
    return EXIT_OK if any(entry.ok for entry in report) else EXIT_NOT_RESOLVED


def _run_health(resolver: CepResolver, args: argparse.Namespace) -> int:
    report = resolver.probe_health(args.cep)
    _print_json(report.to_dict())
    return EXIT_OK if report.healthy else EXIT_NOT_RESOLVED


def _run_serve(settings: Settings, args: argparse.Namespace) -> int:
    from .server import create_app

    app = create_app(settings=settings)
    host = args.host or settings.host
    port = args.port or settings.port
    logger.info("API rodando em http://%s:%s", host, port)
    app.run(host=host, port=port)
    return EXIT_OK


def _run_batch(resolver: CepResolver, args: argparse.Namespace) -> int:
    mapping = _load_mapping(args.mapping_yaml)
    resolve = _strategy(resolver, args.strategy)

    processed = hits = not_found = invalid = unavailable = 0
    start_time = time.perf_counter()

    rows = excel_io.iter_rows(
        excel_path=args.excel,
        sheet=args.sheet,
        start=args.start,
        end=args.end,
        cep_col=args.cep_col,
    )
    for row in rows:
        processed += 1
        record: dict[str, Any]
        try:
            outcome = resolve_with_retries(resolve, row["cep"], args.retries)
        except CepValidationError:
            logger.warning("Linha %s: CEP invalido %r", row["index"], row["cep"])
            invalid += 1
            record = {"status": "cep invalido"}
        else:
            if isinstance(outcome, Resolved):
                hits += 1
                record = {**outcome.address.to_dict(), "status": "ok"}
            elif isinstance(outcome, Exhausted):
                not_found += 1
                record = {"status": "nao encontrado"}
            else:
                unavailable += 1
                reasons = "; ".join(f"{e.provider}: {e.reason}" for e in outcome.errors)
                record = {"status": f"indisponivel: {reasons}"}

        if not args.dry_run:
            excel_io.write_result(
                excel_path=args.excel,
                sheet=args.sheet,
                row_index=row["index"],
                record=record,
                mapping=mapping,
            )

    if not args.dry_run:
        excel_io.save(args.excel)

    duration = time.perf_counter() - start_time
    logger.info(
        "Processamento concluido: processed=%s hits=%s not_found=%s invalid=%s "
        "unavailable=%s duration=%.2fs",
        processed,
        hits,
        not_found,
        invalid,
        unavailable,
        duration,
    )
    return EXIT_NOT_RESOLVED if unavailable else EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    dotenv_path = Path(".env")
    if dotenv_path.exists():
        load_dotenv(dotenv_path=dotenv_path)

    try:
        settings = load_settings(args.config)
    except (OSError, ValueError) as exc:
        logger.error("Configuracao invalida: %s", exc)
        return EXIT_USAGE

    if args.command == "serve":
        return _run_serve(settings, args)

    resolver = CepResolver.from_settings(settings)
    handlers = {
        "lookup": _run_lookup,
        "multiple": _run_multiple,
        "health": _run_health,
        "batch": _run_batch,
    }
    try:
        return handlers[args.command](resolver, args)
    except CepValidationError as exc:
        logger.error("%s", exc)
        return EXIT_USAGE
    except (OSError, ValueError) as exc:
        logger.error("%s", exc)
        return EXIT_USAGE


if __name__ == "__main__":
    raise SystemExit(main())
