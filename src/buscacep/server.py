"""HTTP transport for the resolution engine."""

from __future__ import annotations

from typing import Any

from flask import Flask, current_app, jsonify, request

from .cep import CepValidationError, is_valid_cep, normalize_cep
from .config import Settings, load_settings
from .models import Degraded, Exhausted, Resolved, ResolutionOutcome
from .resolver import CepResolver
from .utils.logging_setup import setup_logger

_BASE_LOGGER = setup_logger()
LOGGER = _BASE_LOGGER.getChild("server")

_STRATEGIES = ("race", "fallback")


def _resolver() -> CepResolver:
    return current_app.config["CEP_RESOLVER"]


def _error(message: str, status: int, **extra: Any):
    body: dict[str, Any] = {"error": message}
    body.update(extra)
    return jsonify(body), status


def outcome_response(outcome: ResolutionOutcome):
    """Map a resolution outcome to ``(body, status)``: 200, 404 or 502."""

    if isinstance(outcome, Resolved):
        return jsonify(outcome.address.to_dict()), 200
    if isinstance(outcome, Exhausted):
        return _error("CEP nao encontrado", 404)
    if isinstance(outcome, Degraded):
        return _error(
            "Provedores indisponiveis",
            502,
            details=[error.to_dict() for error in outcome.errors],
        )
    raise TypeError(f"Resultado desconhecido: {outcome!r}")


def create_app(resolver: CepResolver | None = None, settings: Settings | None = None) -> Flask:
    app = Flask(__name__)
    if resolver is None:
        resolver = CepResolver.from_settings(settings or load_settings())
    app.config["CEP_RESOLVER"] = resolver
    app.json.sort_keys = False

    @app.before_request
    def _only_get():
        if request.method != "GET":
            return _error("Metodo nao permitido", 405)
        return None

    @app.get("/cep/<raw>")
    def get_cep(raw: str):
        if not is_valid_cep(raw):
            return _error("Invalid CEP format. Use 8 digits.", 400)
        strategy = request.args.get("strategy", "race")
        if strategy not in _STRATEGIES:
            return _error(f"Estrategia desconhecida: {strategy}", 400, allowed=list(_STRATEGIES))

        if strategy == "fallback":
            outcome = _resolver().resolve_fallback(raw)
        else:
            outcome = _resolver().resolve_racing(raw)
        return outcome_response(outcome)

    @app.get("/cep/<raw>/multiple")
    def get_cep_multiple(raw: str):
        if not is_valid_cep(raw):
            return _error("Invalid CEP format. Use 8 digits.", 400)
        report = _resolver().resolve_all(raw)
        return jsonify({"cep": raw, "results": [entry.to_dict() for entry in report]})

    @app.get("/cep/")
    @app.get("/cep/<path:raw>")
    def get_cep_malformed(raw: str = ""):
        return _error("Invalid CEP format. Use 8 digits.", 400)

    @app.get("/health")
    def get_health():
        test_cep = request.args.get("cep") or _resolver().health_test_cep
        try:
            report = _resolver().probe_health(test_cep)
        except CepValidationError:
            return _error(
                "CEP invalido para health! Use 8 digitos, exemplo: 01001000",
                400,
                cep=normalize_cep(test_cep),
            )
        return jsonify(report.to_dict()), 200 if report.healthy else 503

    @app.errorhandler(404)
    def _not_found(_exc):
        return _error("Rota nao encontrada", 404)

    @app.errorhandler(405)
    def _method_not_allowed(_exc):
        return _error("Metodo nao permitido", 405)

    return app
