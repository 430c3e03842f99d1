"""Registration, login and profile endpoints."""
from __future__ import annotations

from flask import Blueprint

from routes import from_camel, get_services, json_response, request_payload, token_required

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(user, token):
    return {"user": user.to_dict(), "token": token}


@auth_bp.route("/register", methods=["POST"])
def register():
    """Create an account and return it with a fresh credential."""

    payload = request_payload()
    user, token = get_services().auth.register(
        payload.get("username"),
        payload.get("email"),
        payload.get("password"),
        payload.get("name"),
    )
    return json_response(_session_payload(user, token), message="User registered successfully", status=201)


@auth_bp.route("/login", methods=["POST"])
def login():
    payload = request_payload()
    user, token = get_services().auth.login(payload.get("email"), payload.get("password"))
    return json_response(_session_payload(user, token), message="Login successful")


@auth_bp.route("/profile", methods=["GET"])
@token_required
def get_profile(actor):
    user = get_services().auth.get_profile(actor.id)
    return json_response(user.to_dict())


@auth_bp.route("/profile", methods=["PUT"])
@token_required
def update_profile(actor):
    payload = request_payload()
    fields = from_camel(
        payload,
        {"name": "name", "email": "email", "username": "username", "password": "password", "avatar": "avatar"},
    )
    user = get_services().auth.update_profile(actor.id, fields)
    return json_response(user.to_dict(), message="Profile updated successfully")


@auth_bp.route("/verify", methods=["GET"])
@token_required
def verify(actor):
    """Let the client check whether its stored credential is still valid."""

    return json_response({"user": actor.to_dict()}, message="Token is valid")
