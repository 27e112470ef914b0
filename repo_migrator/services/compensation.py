"""Cleanup of repositories left behind by failed migrations."""

import logging

from repo_migrator.models import Task, User
from repo_migrator.services.store import TaskStore

logger = logging.getLogger(__name__)


def delete_orphaned_repository(
    store: TaskStore, task: Task, doer: User | None = None
) -> bool:
    """Delete the placeholder repository of a failed task.

    Deletion failures are logged and reported through the return value; the
    failed task record stays the source of truth.

    Returns:
        True if the repository was deleted or was already gone
    """
    if task.repo_id is None:
        return False

    try:
        store.delete_repository(doer, task.owner_id, task.repo_id)
    except Exception as e:
        logger.error(
            f"DeleteRepository {task.repo_id} for failed task {task.id} failed: {e}"
        )
        return False

    logger.info(f"Deleted repository {task.repo_id} of failed task {task.id}")
    return True
