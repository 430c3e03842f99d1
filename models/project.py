# models/project.py
from database import db
from models.timestamps import utcnow, isoformat


class Project(db.Model):
    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    owner = db.relationship("User", back_populates="projects")
    tasks = db.relationship("Task", back_populates="project", lazy=True, passive_deletes="all")

    def summary(self) -> dict[str, object]:
        return {"id": self.id, "name": self.name}

    def to_dict(self, *, include_tasks: str | None = None) -> dict[str, object]:
        """Serialize the project.

        ``include_tasks`` is ``"status"`` for the ``{id, status}`` form used by
        list views, ``"full"`` for complete joined tasks, or ``None``.
        """
        payload = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "ownerId": self.owner_id,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
            "owner": self.owner.summary() if self.owner else None,
        }
        if include_tasks == "status":
            payload["tasks"] = [{"id": task.id, "status": task.status} for task in self.tasks]
        elif include_tasks == "full":
            payload["tasks"] = [task.to_dict() for task in self.tasks]
        return payload

    def __repr__(self):
        return f"<Project {self.name}>"
