"""Repository migration Celery task."""

import logging
from uuid import UUID

from repo_migrator.celery_app import app
from repo_migrator.models import TaskStatus
from repo_migrator.services import MigrateTaskRunner

logger = logging.getLogger(__name__)


@app.task(
    bind=True,
    name="repo_migrator.tasks.migrate.run_migrate_task",
    max_retries=0,
)
def run_migrate_task(self, task_id: str):
    """Run a queued migrate task.

    This is a thin Celery wrapper around MigrateTaskRunner. Migration
    failures end up on the task record; only a missing task or an
    unreadable payload is raised here, and it is never retried.

    Args:
        task_id: UUID of the task to run
    """
    task_uuid = UUID(task_id)

    try:
        task = MigrateTaskRunner.default().run(task_uuid)
    except Exception as exc:
        logger.error(f"Error running migrate task {task_id}: {exc}")
        raise

    return {"status": TaskStatus(task.status).name.lower(), "errors": task.errors}
