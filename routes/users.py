"""User administration endpoints."""
from __future__ import annotations

from flask import Blueprint

from routes import from_camel, get_services, json_response, request_payload, token_required

users_bp = Blueprint("users", __name__, url_prefix="/api/users")

USER_FIELDS = {
    "username": "username",
    "email": "email",
    "name": "name",
    "avatar": "avatar",
    "password": "password",
}


@users_bp.route("", methods=["GET"])
@token_required
def list_users(actor):
    users = get_services().users.list_users()
    return json_response([user.to_dict() for user in users], message="Users retrieved successfully")


@users_bp.route("/<int:user_id>", methods=["GET"])
@token_required
def get_user(user_id: int, actor):
    user = get_services().users.get_user(user_id)
    return json_response(user.to_detail_dict(), message="User retrieved successfully")


@users_bp.route("", methods=["POST"])
@token_required
def create_user(actor):
    fields = {"username": None, "email": None, "name": None, **from_camel(request_payload(), USER_FIELDS)}
    user = get_services().users.create_user(actor, **fields)
    return json_response(user.to_dict(), message="User created successfully", status=201)


@users_bp.route("/<int:user_id>", methods=["PUT"])
@token_required
def update_user(user_id: int, actor):
    fields = from_camel(request_payload(), USER_FIELDS)
    user = get_services().users.update_user(actor, user_id, fields)
    return json_response(user.to_dict(), message="User updated successfully")


@users_bp.route("/<int:user_id>", methods=["DELETE"])
@token_required
def delete_user(user_id: int, actor):
    """Delete a user with its owned projects and assigned tasks."""

    get_services().users.delete_user(actor, user_id)
    return json_response(message="User deleted successfully")
