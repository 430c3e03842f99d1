"""A task represents a unit of work inside a Project.

A Task always belongs to exactly one Project; the project cannot change later.
A Task may be assigned to one User, or to nobody.
A Task moves freely between the board columns (todo, in-progress, review, done):
any status may follow any other, and ``done`` can be re-opened.
A Task is created in ``todo`` regardless of what the client asks for.

"""
from __future__ import annotations
from enum import StrEnum
from typing import Optional

import bleach
from database import db
from markdown import markdown as render_markdown
from markupsafe import Markup
from models.timestamps import utcnow, isoformat


class TaskStatus(StrEnum):
    """Board columns."""

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    DONE = "done"


class TaskPriority(StrEnum):
    URGENT = "urgent"
    NORMAL = "normal"
    LOW = "low"


TASK_STATUSES = frozenset(status.value for status in TaskStatus)
TASK_PRIORITIES = frozenset(priority.value for priority in TaskPriority)


def render_task_description_html(description: Optional[str]) -> Markup:
    """Render task description Markdown into sanitized HTML."""
    if not description:
        return Markup("")
    html = render_markdown(
        description,
        extensions=["extra", "sane_lists"],
        output_format="html5",
        tab_length=2,
    )
    allowed_tags = list(bleach.sanitizer.ALLOWED_TAGS) + [
        "p",
        "pre",
        "code",
        "ul",
        "ol",
        "li",
        "table",
        "thead",
        "tbody",
        "tr",
        "th",
        "td",
        "strong",
        "em",
        "blockquote",
        "br",
        "h1",
        "h2",
        "h3",
        "hr",
    ]
    allowed_attributes = {
        **bleach.sanitizer.ALLOWED_ATTRIBUTES,
        "a": ["href", "title", "target", "rel"],
    }
    sanitized_html = bleach.clean(html, tags=allowed_tags, attributes=allowed_attributes)
    return Markup(sanitized_html)


class Task(db.Model):
    __tablename__ = "tasks"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    priority = db.Column(db.String(20), nullable=False, default=TaskPriority.NORMAL.value, index=True)
    status = db.Column(db.String(20), nullable=False, default=TaskStatus.TODO.value, index=True)
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable=False, index=True)
    assignee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    due_date = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    project = db.relationship("Project", back_populates="tasks")
    assignee = db.relationship("User", back_populates="assigned_tasks")

    @property
    def description_html(self):
        return render_task_description_html(self.description)

    def to_dict(self) -> dict[str, object]:
        """Full record with the joined project and assignee summaries."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "descriptionHtml": str(self.description_html),
            "priority": self.priority,
            "status": self.status,
            "projectId": self.project_id,
            "assigneeId": self.assignee_id,
            "dueDate": isoformat(self.due_date),
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
            "project": self.project.summary() if self.project else None,
            "assignee": self.assignee.summary() if self.assignee else None,
        }

    def __repr__(self):
        return f"<Task {self.title}>"
