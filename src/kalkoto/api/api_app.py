"""
Flask API for the policy microsimulation engine
===============================================

Endpoints:
- ``GET /health``
- ``GET /api/policies``: policy files available in ``settings.policy_dir``
- ``POST /api/simulate``: run a baseline (and optional variant) on households
  sent in the request body

Policies are only read from the server-side policy directory; rule code is
never accepted in a request.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request
from pydantic import ValidationError

from kalkoto import __version__
from kalkoto.api.json_serialization import to_json_ready
from kalkoto.api.simulation_schema import SimulationRequest
from kalkoto.config import SimulationSettings, load_settings
from kalkoto.data_loader.policy_file_adapter import TOML_SUFFIXES, YAML_SUFFIXES, PolicyFileAdapter
from kalkoto.entities.menage import Menage
from kalkoto.entities.menage_input import MenageInput, MenageInputBuilder
from kalkoto.errors import KalkotoError, MenageListError, PolicyError, SchemaIncompatibleError
from kalkoto.orchestration.run import session_summary
from kalkoto.orchestration.simulator import SimulatorBuilder

logger = logging.getLogger(__name__)


class RecordsInputAdapter:
    """Households given as a list of ``{name: value}`` records."""

    def __init__(self, records: List[Dict[str, Any]]) -> None:
        self.records = records

    def create_valid_menage_input(self, empty_menage_input: MenageInputBuilder) -> MenageInput:
        menages = [Menage.from_values(i, record) for i, record in enumerate(self.records, start=1)]
        return (
            empty_menage_input.from_unvalidated_liste_menage(menages)
            .validate_liste_menage()
            .build_valide_menage_input()
        )


def _find_policy(policy_dir: Path, name: str) -> Optional[Path]:
    for suffix in sorted(TOML_SUFFIXES | YAML_SUFFIXES):
        candidate = policy_dir / f"{name}{suffix}"
        if candidate.is_file():
            return candidate
    return None


def _error(error: str, message: Any, status_code: int):
    response = jsonify(
        {
            "error": error,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )
    response.status_code = status_code
    return response


def create_app(settings: Optional[SimulationSettings] = None) -> Flask:
    settings = settings or load_settings()
    app = Flask(__name__)
    app.config["KALKOTO_SETTINGS"] = settings

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "operational", "version": __version__})

    @app.route("/api/policies", methods=["GET"])
    def list_policies():
        policy_dir = settings.policy_dir
        names = []
        if policy_dir.is_dir():
            names = sorted(
                p.stem for p in policy_dir.iterdir() if p.suffix.lower() in TOML_SUFFIXES | YAML_SUFFIXES
            )
        return jsonify({"policies": names})

    @app.route("/api/simulate", methods=["POST"])
    def simulate():
        try:
            payload = SimulationRequest.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            return _error("Validation error", to_json_ready(exc.errors(include_context=False)), 400)

        baseline_path = _find_policy(settings.policy_dir, payload.baseline)
        if baseline_path is None:
            return _error("Unknown policy", payload.baseline, 404)
        variante_path = None
        if payload.variante is not None:
            variante_path = _find_policy(settings.policy_dir, payload.variante)
            if variante_path is None:
                return _error("Unknown policy", payload.variante, 404)
        elif payload.parameter_overrides:
            variante_path = baseline_path

        try:
            session = SimulatorBuilder(settings=settings)
            session = session.add_menage_input(RecordsInputAdapter(payload.menages))
            session = session.add_valid_baseline_policy(PolicyFileAdapter(baseline_path))
            session = session.simulate_baseline_policy()
            if variante_path is not None:
                session = session.add_valid_variante_policy(
                    PolicyFileAdapter(variante_path, parameter_overrides=payload.parameter_overrides)
                )
                session = session.simulate_variante_policy()
        except (MenageListError, PolicyError, SchemaIncompatibleError) as exc:
            logger.info("Rejected simulation request: %s", exc)
            return _error("Validation error", str(exc), 400)
        except KalkotoError as exc:
            logger.exception("Simulation failed")
            return _error("Simulation failed", str(exc), 500)

        body = {
            "summary": session_summary(session),
            "results_baseline": session.results_baseline,
            "results_variante": session.results_variante,
            "results_diff": session.results_diff,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        return jsonify(to_json_ready(body))

    return app


__all__ = ["create_app", "RecordsInputAdapter"]
