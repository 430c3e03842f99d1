"""Task endpoints. Every successful write is broadcast to connected clients."""
from __future__ import annotations

from flask import Blueprint, request

from routes import from_camel, get_services, json_response, query_int, request_payload, token_required

tasks_bp = Blueprint("tasks", __name__, url_prefix="/api/tasks")

TASK_FIELDS = {
    "title": "title",
    "description": "description",
    "priority": "priority",
    "status": "status",
    "projectId": "project_id",
    "assigneeId": "assignee_id",
    "dueDate": "due_date",
}


@tasks_bp.route("", methods=["GET"])
@token_required
def list_tasks(actor):
    """List tasks filtered by ``projectId``, ``status``, ``priority`` and ``assigneeId``."""

    tasks = get_services().tasks.list_tasks(
        project_id=query_int("projectId"),
        status=request.args.get("status") or None,
        priority=request.args.get("priority") or None,
        assignee_id=query_int("assigneeId"),
    )
    return json_response([task.to_dict() for task in tasks], message="Tasks retrieved successfully")


@tasks_bp.route("/<int:task_id>", methods=["GET"])
@token_required
def get_task(task_id: int, actor):
    task = get_services().tasks.get_task(task_id)
    return json_response(task.to_dict(), message="Task retrieved successfully")


@tasks_bp.route("", methods=["POST"])
@token_required
def create_task(actor):
    fields = {"title": None, "project_id": None, **from_camel(request_payload(), TASK_FIELDS)}
    task = get_services().tasks.create_task(actor, **fields)
    return json_response(task.to_dict(), message="Task created successfully", status=201)


@tasks_bp.route("/<int:task_id>", methods=["PUT"])
@token_required
def update_task(task_id: int, actor):
    fields = from_camel(request_payload(), TASK_FIELDS)
    task = get_services().tasks.update_task(actor, task_id, fields)
    return json_response(task.to_dict(), message="Task updated successfully")


@tasks_bp.route("/<int:task_id>", methods=["DELETE"])
@token_required
def delete_task(task_id: int, actor):
    get_services().tasks.delete_task(actor, task_id)
    return json_response(message="Task deleted successfully")
