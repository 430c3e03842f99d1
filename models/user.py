"""Represents a user in the system.

A User can register and log in to obtain a bearer credential.
A User owns Projects and can be assigned Tasks.
Deleting a User removes its owned Projects and assigned Tasks
(performed by the user service, not by the database).

"""

from werkzeug.security import generate_password_hash, check_password_hash
from database import db
from models.timestamps import utcnow, isoformat


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False)
    email = db.Column(db.String(100), unique=True, nullable=False)
    name = db.Column(db.String(100), nullable=False)
    password_hash = db.Column(db.String(255), nullable=True)
    avatar = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    projects = db.relationship("Project", back_populates="owner", lazy=True, passive_deletes="all")
    assigned_tasks = db.relationship("Task", back_populates="assignee", lazy=True, passive_deletes="all")

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def summary(self) -> dict[str, object]:
        """Short form joined into task and project payloads."""
        return {"id": self.id, "name": self.name, "username": self.username}

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "name": self.name,
            "avatar": self.avatar,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }

    def to_detail_dict(self) -> dict[str, object]:
        """User record with owned projects and assigned tasks."""
        payload = self.to_dict()
        payload["projects"] = [project.summary() for project in self.projects]
        payload["assignedTasks"] = [
            {"id": task.id, "title": task.title, "status": task.status, "priority": task.priority}
            for task in self.assigned_tasks
        ]
        return payload

    def __repr__(self):
        return f"<User {self.id}>"
