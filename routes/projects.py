"""Project endpoints."""
from __future__ import annotations

from flask import Blueprint

from routes import from_camel, get_services, json_response, query_int, request_payload, token_required

projects_bp = Blueprint("projects", __name__, url_prefix="/api/projects")

PROJECT_FIELDS = {"name": "name", "description": "description", "ownerId": "owner_id"}


@projects_bp.route("", methods=["GET"])
@token_required
def list_projects(actor):
    projects = get_services().projects.list_projects(owner_id=query_int("ownerId"))
    return json_response(
        [project.to_dict(include_tasks="status") for project in projects],
        message="Projects retrieved successfully",
    )


@projects_bp.route("/<int:project_id>", methods=["GET"])
@token_required
def get_project(project_id: int, actor):
    project = get_services().projects.get_project(project_id)
    return json_response(project.to_dict(include_tasks="full"), message="Project retrieved successfully")


@projects_bp.route("", methods=["POST"])
@token_required
def create_project(actor):
    """Create a project; ``ownerId`` defaults to the caller."""

    fields = {"name": None, **from_camel(request_payload(), PROJECT_FIELDS)}
    project = get_services().projects.create_project(actor, **fields)
    return json_response(project.to_dict(), message="Project created successfully", status=201)


@projects_bp.route("/<int:project_id>", methods=["PUT"])
@token_required
def update_project(project_id: int, actor):
    fields = from_camel(request_payload(), PROJECT_FIELDS)
    project = get_services().projects.update_project(actor, project_id, fields)
    return json_response(project.to_dict(), message="Project updated successfully")


@projects_bp.route("/<int:project_id>", methods=["DELETE"])
@token_required
def delete_project(project_id: int, actor):
    """Delete a project together with its tasks."""

    get_services().projects.delete_project(actor, project_id)
    return json_response(message="Project deleted successfully")
