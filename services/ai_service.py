"""Loads snapshots for the advisor and shapes its answers for the API."""

from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from errors import InternalError
from models.project import Project
from models.task import Task, TaskStatus
from models.user import User
from services import advisor, load_or_404

RECENT_TASK_LIMIT = 50


def _snapshot(task: Task) -> advisor.TaskSnapshot:
    return advisor.TaskSnapshot(
        id=task.id,
        title=task.title,
        status=task.status,
        priority=task.priority,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


class AIService:
    def __init__(self, session):
        self.session = session

    def _project_tasks(self, project_id: int, limit: int | None = None) -> list[advisor.TaskSnapshot]:
        query = (
            self.session.query(Task)
            .filter_by(project_id=project_id)
            .order_by(Task.created_at.desc(), Task.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        try:
            return [_snapshot(task) for task in query.all()]
        except SQLAlchemyError as exc:
            logging.exception("Unable to load tasks for project %s", project_id)
            raise InternalError("Failed to load project tasks") from exc

    def recommendations(self, project_id: int, user_id: int) -> list[dict[str, object]]:
        project = load_or_404(self.session, Project, project_id, "Project")
        load_or_404(self.session, User, user_id, "User")
        tasks = self._project_tasks(project.id, limit=RECENT_TASK_LIMIT)
        return [suggestion.to_dict() for suggestion in advisor.recommend(project.name, tasks)]

    def project_insights(self, project_id: int) -> dict[str, object]:
        project = load_or_404(self.session, Project, project_id, "Project")
        return advisor.insights(project.id, project.name, self._project_tasks(project.id))

    def assignment_suggestions(self, task_id: int) -> list[dict]:
        """Users with the fewest unfinished assigned tasks, lightest first."""
        load_or_404(self.session, Task, task_id, "Task")
        open_counts = (
            self.session.query(Task.assignee_id, func.count(Task.id))
            .filter(Task.assignee_id.isnot(None), Task.status != TaskStatus.DONE.value)
            .group_by(Task.assignee_id)
        )
        try:
            workload_by_user = dict(open_counts.all())
            users = self.session.query(User).all()
        except SQLAlchemyError as exc:
            logging.exception("Unable to compute workloads for task %s", task_id)
            raise InternalError("Failed to get assignment suggestions") from exc
        return advisor.rank_assignees(
            (user.summary(), workload_by_user.get(user.id, 0)) for user in users
        )


__all__ = ["AIService"]
