"""Task status transitions and their persistence."""

import logging
from datetime import UTC, datetime

from repo_migrator.core.errors import InvalidTransitionError, PersistenceError
from repo_migrator.models import Task, TaskStatus
from repo_migrator.services.store import TaskStore

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    # Queued -> Failed happens when the task cannot be set up at enqueue time
    TaskStatus.QUEUED: frozenset({TaskStatus.RUNNING, TaskStatus.FAILED}),
    TaskStatus.RUNNING: frozenset({TaskStatus.FAILED, TaskStatus.FINISHED}),
    TaskStatus.FAILED: frozenset(),
    TaskStatus.FINISHED: frozenset(),
}


def transition(current: int, target: TaskStatus) -> TaskStatus:
    """Validate a status change.

    Raises:
        InvalidTransitionError: If ``target`` cannot follow ``current``
    """
    current = TaskStatus(current)
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(current, target)
    return target


class TaskStateMachine:
    """Moves a task through its lifecycle and persists every step."""

    def __init__(self, store: TaskStore):
        self.store = store

    def begin(self, task: Task) -> None:
        """Mark the task running.

        Raises:
            PersistenceError: If the task could not be updated; the task is
                left in its previous state
        """
        status = transition(task.status, TaskStatus.RUNNING)
        previous = (task.status, task.start_time)

        task.status = status
        task.start_time = datetime.now(UTC)
        try:
            self.store.update_columns(task, "start_time", "status")
        except PersistenceError:
            task.status, task.start_time = previous
            raise

        logger.info(f"Task {task.id} running")

    def succeed(self, task: Task) -> bool:
        """Mark the task finished. Returns False if it could not be saved.

        Any error other than PersistenceError is raised with the task left
        running, so the caller can still fail it.
        """
        status = transition(task.status, TaskStatus.FINISHED)
        previous = (task.status, task.end_time, task.payload_content)

        task.status = status
        task.end_time = datetime.now(UTC)
        try:
            self.store.finish_task(task)
        except PersistenceError as e:
            logger.warning(f"Task {task.id} finished but could not be saved: {e}")
            return False
        except Exception:
            task.status, task.end_time, task.payload_content = previous
            raise

        logger.info(f"Task {task.id} finished")
        return True

    def fail(self, task: Task, message: str) -> bool:
        """Mark the task failed with ``message``. Returns False if it could not be saved."""
        task.status = transition(task.status, TaskStatus.FAILED)
        task.end_time = datetime.now(UTC)
        task.errors = message or "unknown error"
        try:
            self.store.update_columns(task, "status", "errors", "end_time")
        except PersistenceError as e:
            logger.error(f"Task {task.id} failed but could not be saved: {e}")
            return False

        logger.info(f"Task {task.id} failed: {task.errors}")
        return True
