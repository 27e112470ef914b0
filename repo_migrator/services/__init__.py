"""Business logic services."""

from .git import GitMigrator
from .migrate import MigrateTaskRunner
from .state import TaskStateMachine
from .store import SQLTaskStore, TaskStore

__all__ = [
    "GitMigrator",
    "MigrateTaskRunner",
    "SQLTaskStore",
    "TaskStateMachine",
    "TaskStore",
]
