"""Project lifecycle. Projects have no state machine, only existence and ownership rules."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload, selectinload

from errors import InternalError, ValidationError
from forms import ProjectForm, validate_payload
from models.project import Project
from models.task import Task
from models.user import User
from realtime import LifecycleEvent
from services import (
    EventPublisher,
    commit_or_raise,
    load_or_404,
    publish_event,
    require_actor,
)


class ProjectService:
    def __init__(self, session, publisher: EventPublisher | None = None):
        self.session = session
        self.publisher = publisher

    def list_projects(self, owner_id: int | None = None) -> list[Project]:
        query = self.session.query(Project).options(
            joinedload(Project.owner),
            selectinload(Project.tasks),
        )
        if owner_id is not None:
            query = query.filter_by(owner_id=owner_id)
        try:
            return query.order_by(Project.created_at.desc(), Project.id.desc()).all()
        except SQLAlchemyError as exc:
            logging.exception("Error fetching projects")
            raise InternalError("Failed to fetch projects") from exc

    def get_project(self, project_id: int) -> Project:
        return load_or_404(self.session, Project, project_id, "Project")

    def create_project(self, actor: User | None, name, description=None, owner_id=None) -> Project:
        """Create a project owned by ``owner_id``, defaulting to the caller."""
        require_actor(actor)
        data = validate_payload(
            ProjectForm,
            {
                "name": name,
                "description": description,
                "owner_id": actor.id if owner_id is None else owner_id,
            },
        )
        owner = load_or_404(self.session, User, data["owner_id"], "Owner")
        project = Project(name=data["name"], description=data["description"], owner_id=owner.id)
        self.session.add(project)
        commit_or_raise(self.session, "Failed to create project")
        logging.info("User %s created project %s", actor.id, project.id)

        publish_event(self.publisher, LifecycleEvent.PROJECT_CREATED, project.to_dict())
        return project

    def update_project(self, actor: User | None, project_id: int, fields: Mapping[str, Any]) -> Project:
        """Update name and/or description. Ownership cannot change."""
        require_actor(actor)
        project = self.get_project(project_id)
        updates = {key: fields[key] for key in ("name", "description", "owner_id") if key in fields}
        data = validate_payload(ProjectForm, updates, partial=True) if updates else {}
        if "owner_id" in data:
            if data.pop("owner_id") != project.owner_id:
                raise ValidationError("ownerId cannot be changed")

        for key, value in data.items():
            setattr(project, key, value)
        commit_or_raise(self.session, "Failed to update project")
        logging.info("User %s updated project %s", actor.id, project.id)

        publish_event(self.publisher, LifecycleEvent.PROJECT_UPDATED, project.to_dict())
        return project

    def delete_project(self, actor: User | None, project_id: int) -> None:
        """Delete the project's tasks, then the project itself."""
        require_actor(actor)
        project = self.get_project(project_id)
        task_ids = delete_tasks(self.session, self.session.query(Task).filter_by(project_id=project.id))
        self.session.delete(project)
        commit_or_raise(self.session, "Failed to delete project")
        logging.info("User %s deleted project %s with %d task(s)", actor.id, project_id, len(task_ids))

        for task_id in task_ids:
            publish_event(self.publisher, LifecycleEvent.TASK_DELETED, {"id": task_id})
        publish_event(self.publisher, LifecycleEvent.PROJECT_DELETED, {"id": project_id})


def delete_tasks(session, query) -> list[int]:
    """Delete every task matched by ``query`` and flush; return the deleted ids."""
    try:
        tasks = query.all()
        for task in tasks:
            session.delete(task)
        session.flush()
    except SQLAlchemyError as exc:
        session.rollback()
        logging.exception("Unable to delete tasks")
        raise InternalError("Failed to delete tasks") from exc
    return [task.id for task in tasks]


__all__ = ["ProjectService", "delete_tasks"]
