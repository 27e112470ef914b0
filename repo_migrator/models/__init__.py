"""Database models."""

from .options import MigrateOptions
from .repository import Repository, RepositoryStatus, repository_path
from .task import Task, TaskStatus, TaskType
from .user import User

__all__ = [
    "MigrateOptions",
    "Repository",
    "RepositoryStatus",
    "Task",
    "TaskStatus",
    "TaskType",
    "User",
    "repository_path",
]
