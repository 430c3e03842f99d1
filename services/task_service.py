"""Task lifecycle: creation, partial updates, deletion and filtered listing.

Status moves freely between the four board columns; the only rule is that a
new task always starts in ``todo``. Concurrent updates are last-write-wins.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from errors import InternalError, ValidationError
from forms import TaskForm, validate_payload
from models.project import Project
from models.task import Task, TaskPriority, TaskStatus
from models.user import User
from realtime import LifecycleEvent
from services import (
    EventPublisher,
    commit_or_raise,
    load_or_404,
    publish_event,
    require_actor,
)

UPDATABLE_FIELDS = ("title", "description", "priority", "status", "assignee_id", "due_date", "project_id")
REQUIRED_FIELDS = ("title", "priority", "status")


class TaskService:
    def __init__(self, session, publisher: EventPublisher | None = None):
        self.session = session
        self.publisher = publisher

    def _query(self):
        return self.session.query(Task).options(
            joinedload(Task.project),
            joinedload(Task.assignee),
        )

    def list_tasks(
        self,
        project_id: int | None = None,
        status: str | None = None,
        priority: str | None = None,
        assignee_id: int | None = None,
    ) -> list[Task]:
        """Return tasks matching every provided filter, newest first."""
        filters = {
            "project_id": project_id,
            "status": status,
            "priority": priority,
            "assignee_id": assignee_id,
        }
        query = self._query().filter_by(**{key: value for key, value in filters.items() if value is not None})
        try:
            return query.order_by(Task.created_at.desc(), Task.id.desc()).all()
        except SQLAlchemyError as exc:
            logging.exception("Error fetching tasks")
            raise InternalError("Failed to fetch tasks") from exc

    def get_task(self, task_id: int) -> Task:
        return load_or_404(self.session, Task, task_id, "Task")

    def create_task(
        self,
        actor: User | None,
        title,
        project_id,
        description=None,
        priority=None,
        assignee_id=None,
        due_date=None,
        status=None,
    ) -> Task:
        """Create a task in ``project_id``; ``status`` is accepted but always reset to ``todo``."""
        require_actor(actor)
        data = validate_payload(
            TaskForm,
            {
                "title": title,
                "project_id": project_id,
                "description": description,
                "priority": priority,
                "assignee_id": assignee_id,
                "due_date": due_date,
            },
        )
        project = load_or_404(self.session, Project, data["project_id"], "Project")
        if data["assignee_id"] is not None:
            load_or_404(self.session, User, data["assignee_id"], "Assignee")

        task = Task(
            title=data["title"],
            description=data["description"],
            priority=data["priority"] or TaskPriority.NORMAL.value,
            status=TaskStatus.TODO.value,
            project_id=project.id,
            assignee_id=data["assignee_id"],
            due_date=data["due_date"],
        )
        self.session.add(task)
        commit_or_raise(self.session, "Failed to create task")
        logging.info("User %s created task %s in project %s", actor.id, task.id, project.id)

        payload = task.to_dict()
        publish_event(self.publisher, LifecycleEvent.TASK_CREATED, payload)
        return task

    def update_task(self, actor: User | None, task_id: int, fields: Mapping[str, Any]) -> Task:
        """Apply the fields present in ``fields``; ``None`` clears optional fields.

        An empty mapping changes nothing but still broadcasts the task.
        """
        require_actor(actor)
        task = self.get_task(task_id)
        updates = {key: fields[key] for key in UPDATABLE_FIELDS if key in fields}
        data = validate_payload(TaskForm, updates, partial=True) if updates else {}

        if "project_id" in data:
            if data.pop("project_id") != task.project_id:
                raise ValidationError("projectId cannot be changed")
        for key in REQUIRED_FIELDS:
            if key in data and data[key] is None:
                raise ValidationError(f"{key} cannot be cleared")
        if data.get("assignee_id") is not None:
            load_or_404(self.session, User, data["assignee_id"], "Assignee")

        for key, value in data.items():
            setattr(task, key, value)
        commit_or_raise(self.session, "Failed to update task")
        logging.info("User %s updated task %s (%s)", actor.id, task.id, ", ".join(sorted(data)) or "no changes")

        publish_event(self.publisher, LifecycleEvent.TASK_UPDATED, task.to_dict())
        return task

    def delete_task(self, actor: User | None, task_id: int) -> None:
        require_actor(actor)
        task = self.get_task(task_id)
        self.session.delete(task)
        commit_or_raise(self.session, "Failed to delete task")
        logging.info("User %s deleted task %s", actor.id, task_id)
        publish_event(self.publisher, LifecycleEvent.TASK_DELETED, {"id": task_id})


__all__ = ["TaskService"]
