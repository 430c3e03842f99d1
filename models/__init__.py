"""ORM models. Importing the package registers every mapper with ``db``."""

from models.user import User
from models.project import Project
from models.task import Task, TaskPriority, TaskStatus

__all__ = ["Project", "Task", "TaskPriority", "TaskStatus", "User"]
