"""Celery tasks."""

from .migrate import run_migrate_task

__all__ = ["run_migrate_task"]
