"""WTForms definitions for the JSON payloads accepted by the API.

The forms are plain ``wtforms.Form`` classes fed with ``data=`` rather than
request form data; ``validate_payload`` runs one and raises the first problem
as an ``errors.ValidationError``.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from wtforms import Form, IntegerField, PasswordField, StringField, TextAreaField
from wtforms.validators import (
    DataRequired,
    Length,
    Regexp,
    ValidationError,
)

import errors
from models.task import TASK_PRIORITIES, TASK_STATUSES

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


def _text(value):
    """Strip strings; reject non-string JSON values."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("Must be a string.")
    return value.strip()


def _raw_text(value):
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("Must be a string.")
    return value


def _none_if_blank(value):
    return value or None


class ReferenceField(IntegerField):
    """Integer id field that refuses booleans and fractional numbers."""

    def process_data(self, value):
        if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
            self.data = None
            raise ValueError(f"{self.label.text} must be an integer id.")
        super().process_data(value)


def _datetime(value):
    """Parse ISO-8601 dates into naive UTC datetimes."""
    if value is None or isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError("Invalid date format.")
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise ValueError("Invalid date format.") from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class RegisterForm(Form):
    username = StringField(
        "Username",
        validators=[
            DataRequired(message="All fields are required"),
            Length(min=3, max=50, message="Username must be between 3 and 50 characters"),
        ],
        filters=[_text],
    )
    email = StringField(
        "Email",
        validators=[
            DataRequired(message="All fields are required"),
            Length(max=100, message="Email must be 100 characters or fewer"),
            Regexp(EMAIL_PATTERN, message="Invalid email format"),
        ],
        filters=[_text],
    )
    password = PasswordField(
        "Password",
        validators=[
            DataRequired(message="All fields are required"),
            Length(min=6, message="Password must be at least 6 characters long"),
        ],
        filters=[_raw_text],
    )
    name = StringField(
        "Name",
        validators=[
            DataRequired(message="All fields are required"),
            Length(max=100, message="Name must be 100 characters or fewer"),
        ],
        filters=[_text],
    )


class LoginForm(Form):
    email = StringField(
        "Email",
        [DataRequired(message="Email and password are required")],
        filters=[_text],
    )
    password = PasswordField(
        "Password",
        [DataRequired(message="Email and password are required")],
        filters=[_raw_text],
    )


class UserForm(Form):
    """Profile and user-admin fields. Password is optional here."""

    username = StringField(
        "Username",
        validators=[
            DataRequired(message="Username, email, and name are required"),
            Length(min=3, max=50, message="Username must be between 3 and 50 characters"),
        ],
        filters=[_text],
    )
    email = StringField(
        "Email",
        validators=[
            DataRequired(message="Username, email, and name are required"),
            Length(max=100, message="Email must be 100 characters or fewer"),
            Regexp(EMAIL_PATTERN, message="Invalid email format"),
        ],
        filters=[_text],
    )
    name = StringField(
        "Name",
        validators=[
            DataRequired(message="Username, email, and name are required"),
            Length(max=100, message="Name must be 100 characters or fewer"),
        ],
        filters=[_text],
    )
    avatar = StringField("Avatar", filters=[_text, _none_if_blank])
    password = PasswordField("Password", filters=[_raw_text])

    def validate_avatar(self, field):
        if field.data and len(field.data) > 255:
            raise ValidationError("Avatar must be 255 characters or fewer")

    def validate_password(self, field):
        if field.data is not None and len(field.data) < 6:
            raise ValidationError("Password must be at least 6 characters long")


class ProjectForm(Form):
    name = StringField(
        "Name",
        validators=[
            DataRequired(message="Name is required"),
            Length(max=100, message="Name must be 100 characters or fewer"),
        ],
        filters=[_text],
    )
    description = TextAreaField("Description", filters=[_raw_text])
    owner_id = ReferenceField("Owner")


class TaskForm(Form):
    title = StringField(
        "Title",
        validators=[
            DataRequired(message="Title and projectId are required"),
            Length(max=200, message="Title must be 200 characters or fewer"),
        ],
        filters=[_text],
    )
    description = TextAreaField("Description", filters=[_raw_text])
    priority = StringField("Priority", filters=[_text])
    status = StringField("Status", filters=[_text])
    project_id = ReferenceField(
        "Project",
        validators=[DataRequired(message="Title and projectId are required")],
    )
    assignee_id = ReferenceField("Assignee")
    due_date = StringField("Due Date", filters=[_datetime])

    def validate_priority(self, field):
        if field.data is not None and field.data not in TASK_PRIORITIES:
            raise ValidationError(f"Priority must be one of: {', '.join(sorted(TASK_PRIORITIES))}")

    def validate_status(self, field):
        if field.data is not None and field.data not in TASK_STATUSES:
            raise ValidationError(f"Status must be one of: {', '.join(sorted(TASK_STATUSES))}")


def validate_payload(
    form_class: type[Form], payload: Mapping[str, Any], *, partial: bool = False
) -> dict[str, Any]:
    """Validate ``payload`` with ``form_class`` and return the cleaned values.

    With ``partial`` only the keys present in the payload are checked and
    returned, which is how update requests are validated.
    """
    form = form_class(data=dict(payload))
    checked = [field for field in form if not partial or field.name in payload]
    # Coercion errors first: Length would call len() on a non-string value.
    for field in checked:
        if field.process_errors:
            raise errors.ValidationError(field.process_errors[0])
    form.validate()
    for field in form:
        if partial and field.name not in payload:
            continue
        if field.errors:
            raise errors.ValidationError(field.errors[0])
    if partial:
        return {field.name: field.data for field in form if field.name in payload}
    return dict(form.data)


__all__ = [
    "LoginForm",
    "ProjectForm",
    "RegisterForm",
    "TaskForm",
    "UserForm",
    "validate_payload",
]
