"""User administration for the ``/api/users`` endpoints."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from errors import InternalError
from forms import UserForm, validate_payload
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
from services.auth_service import ensure_unique_identity
from services.project_service import delete_tasks

USER_FIELDS = ("username", "email", "name", "avatar", "password")


class UserService:
    def __init__(self, session, publisher: EventPublisher | None = None):
        self.session = session
        self.publisher = publisher

    def list_users(self) -> list[User]:
        try:
            return self.session.query(User).order_by(User.name.asc(), User.id.asc()).all()
        except SQLAlchemyError as exc:
            logging.exception("Error fetching users")
            raise InternalError("Failed to fetch users") from exc

    def get_user(self, user_id: int) -> User:
        return load_or_404(self.session, User, user_id, "User")

    def create_user(self, actor: User | None, username, email, name, avatar=None, password=None) -> User:
        """Create a user. Without a password the account exists but cannot log in."""
        require_actor(actor)
        data = validate_payload(
            UserForm,
            {"username": username, "email": email, "name": name, "avatar": avatar, "password": password},
        )
        ensure_unique_identity(self.session, data["username"], data["email"])

        user = User(
            username=data["username"],
            email=data["email"],
            name=data["name"],
            avatar=data["avatar"],
        )
        if data["password"]:
            user.set_password(data["password"])
        self.session.add(user)
        commit_or_raise(self.session, "Failed to create user")
        logging.info("User %s created user %s", actor.id, user.id)
        return user

    def update_user(self, actor: User | None, user_id: int, fields: Mapping[str, Any]) -> User:
        require_actor(actor)
        user = self.get_user(user_id)
        updates = {key: fields[key] for key in USER_FIELDS if key in fields}
        data = validate_payload(UserForm, updates, partial=True) if updates else {}
        ensure_unique_identity(self.session, data.get("username"), data.get("email"), exclude_id=user.id)

        password = data.pop("password", None)
        if password is not None:
            user.set_password(password)
        for key, value in data.items():
            setattr(user, key, value)
        commit_or_raise(self.session, "Failed to update user")
        return user

    def delete_user(self, actor: User | None, user_id: int) -> None:
        """Delete a user along with the tasks assigned to it and the projects it owns.

        Tasks of the owned projects are removed too, so no task is left
        pointing at a deleted project.
        """
        require_actor(actor)
        actor_id = actor.id
        user = self.get_user(user_id)
        owned_project_ids = [project.id for project in self.session.query(Project).filter_by(owner_id=user.id)]
        task_query = self.session.query(Task).filter(
            or_(Task.assignee_id == user.id, Task.project_id.in_(owned_project_ids))
        )
        task_ids = delete_tasks(self.session, task_query)
        try:
            for project in self.session.query(Project).filter(Project.id.in_(owned_project_ids)):
                self.session.delete(project)
            self.session.flush()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logging.exception("Unable to delete projects of user %s", user_id)
            raise InternalError("Failed to delete user") from exc
        self.session.delete(user)
        commit_or_raise(self.session, "Failed to delete user")
        logging.info(
            "User %s deleted user %s (%d project(s), %d task(s))",
            actor_id,
            user_id,
            len(owned_project_ids),
            len(task_ids),
        )

        for task_id in task_ids:
            publish_event(self.publisher, LifecycleEvent.TASK_DELETED, {"id": task_id})
        for project_id in owned_project_ids:
            publish_event(self.publisher, LifecycleEvent.PROJECT_DELETED, {"id": project_id})


__all__ = ["UserService"]
