import json
import logging
import os
from typing import Any, Callable, Dict, Optional

from flask import Flask, jsonify, request

from debt_calc.errors import DebtCalcError
from debt_calc.formatter import snapshot_to_dict
from debt_calc.ledger import snapshot
from debt_calc.utils import parse_amount
from debt_calc.validator import validate_config
from debt_calc_web.auth import create_authenticator_from_env

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, content-type, x-password",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
}

# Failures reading the config file, reported as a JSON 500
CONFIG_LOAD_ERRORS = (OSError, json.JSONDecodeError, RuntimeError)


def _file_loader(path: Optional[str]) -> Callable[[], Dict[str, Any]]:
    def load() -> Dict[str, Any]:
        if not path:
            raise RuntimeError("DEBT_CALC_CONFIG_PATH is not set")
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    return load


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def _snapshot_options(args) -> Dict[str, Any]:
    options: Dict[str, Any] = {"as_of": args.get("as_of") or None}
    months = args.get("months")
    if months:
        try:
            options["upcoming_months"] = int(months)
        except ValueError:
            raise DebtCalcError(f"months must be an integer; got {months!r}")
        if options["upcoming_months"] < 0:
            raise DebtCalcError("months must not be negative")
    payment = args.get("payment")
    if payment:
        try:
            options["payment_override"] = parse_amount(payment)
        except ValueError as exc:
            raise DebtCalcError(str(exc)) from exc
    return options


def create_app(config_loader: Optional[Callable[[], Dict[str, Any]]] = None, authenticator=None) -> Flask:
    """Build the Flask app.

    ``config_loader`` returns the raw debt configuration and is called on
    every request; ``authenticator`` maps the ``X-Password`` header to a role.
    Both default to values taken from the environment.
    """
    app = Flask(__name__)
    logging.basicConfig(level=os.environ.get("DEBT_CALC_LOG_LEVEL", "INFO").upper())
    load_raw_config = config_loader or _file_loader(os.environ.get("DEBT_CALC_CONFIG_PATH"))
    auth = authenticator or create_authenticator_from_env(os.environ.get("DEBT_CALC_CREDENTIALS"))

    def _authorised_role() -> Optional[str]:
        role = auth.authenticate(request.headers.get("X-Password"))
        if role is None:
            logger.warning("Rejected credential from %s for %s", request.remote_addr, request.path)
        return role

    @app.after_request
    def add_cors_headers(response):
        response.headers.update(CORS_HEADERS)
        return response

    @app.route("/api/debt", methods=["GET", "OPTIONS"])
    def debt_config():
        if request.method == "OPTIONS":
            return "", 200
        role = _authorised_role()
        if role is None:
            return _error("Invalid password", 401)
        try:
            raw = load_raw_config()
            validate_config(raw)
        except DebtCalcError as exc:
            logger.info("Config request failed: %s", exc)
            return _error(str(exc), 400)
        except CONFIG_LOAD_ERRORS as exc:
            logger.error("Could not load debt config: %s", exc)
            return _error("Debt config is unavailable", 500)
        return jsonify({**raw, "role": role})

    @app.route("/api/debt/snapshot", methods=["GET", "OPTIONS"])
    def debt_snapshot():
        if request.method == "OPTIONS":
            return "", 200
        role = _authorised_role()
        if role is None:
            return _error("Invalid password", 401)
        try:
            config = validate_config(load_raw_config())
            snap = snapshot(config, **_snapshot_options(request.args))
        except DebtCalcError as exc:
            logger.info("Snapshot request failed: %s", exc)
            return _error(str(exc), 400)
        except CONFIG_LOAD_ERRORS as exc:
            logger.error("Could not load debt config: %s", exc)
            return _error("Debt config is unavailable", 500)
        return jsonify({**snapshot_to_dict(snap), "role": role})

    return app


app = create_app()


if __name__ == "__main__":
    print("Starting debt calculator web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)
