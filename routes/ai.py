"""Advisor endpoints: recommendations, insights and assignment suggestions."""
from __future__ import annotations

from flask import Blueprint

from routes import get_services, json_response, query_int, token_required

ai_bp = Blueprint("ai", __name__, url_prefix="/api/ai")


@ai_bp.route("/recommendations/<int:project_id>", methods=["GET"])
@token_required
def recommendations(project_id: int, actor):
    """Suggestions for a project, for ``userId`` or the caller when omitted."""

    user_id = query_int("userId")
    if user_id is None:
        user_id = actor.id
    return json_response(get_services().ai.recommendations(project_id, user_id))


@ai_bp.route("/insights/<int:project_id>", methods=["GET"])
@token_required
def insights(project_id: int, actor):
    return json_response(get_services().ai.project_insights(project_id))


@ai_bp.route("/assignment-suggestions/<int:task_id>", methods=["GET"])
@token_required
def assignment_suggestions(task_id: int, actor):
    return json_response(get_services().ai.assignment_suggestions(task_id))
