"""Shared helpers for route blueprints."""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Any, Mapping

from flask import current_app, jsonify, request

from errors import Unauthorized, ValidationError

__all__ = [
    "Services",
    "from_camel",
    "get_services",
    "json_response",
    "query_int",
    "request_payload",
    "token_required",
]


@dataclass
class Services:
    """Service objects built once by ``create_app``."""

    auth: Any
    tasks: Any
    projects: Any
    users: Any
    ai: Any


def get_services() -> Services:
    return current_app.extensions["tablecraft"]


def json_response(data: Any = None, *, message: str | None = None, status: int = 200):
    """Return the ``{success, data, message}`` envelope used by every endpoint."""
    payload: dict[str, Any] = {"success": True}
    if data is not None:
        payload["data"] = data
    if message:
        payload["message"] = message
    return jsonify(payload), status


def request_payload() -> dict[str, Any]:
    """Return the JSON object body, or raise ``ValidationError`` for anything else."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def from_camel(payload: Mapping[str, Any], names: Mapping[str, str]) -> dict[str, Any]:
    """Rename the wire keys in ``names`` that are present in ``payload``.

    Absent keys stay absent so that partial updates can tell "omitted"
    from "null".
    """
    return {python_name: payload[wire_name] for wire_name, python_name in names.items() if wire_name in payload}


def query_int(name: str) -> int | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"Invalid {name}") from None


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def token_required(f):
    """Require a valid bearer credential for the route.

    The verified user is handed to the view as the ``actor`` keyword
    argument.
    Usage:
        @tasks_bp.route("/", methods=["POST"])
        @token_required
        def create_task(actor):
            ...
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            raise Unauthorized("Access token required")
        kwargs["actor"] = get_services().auth.verify(token)
        return f(*args, **kwargs)

    return decorated_function
