"""Creation and execution of repository migrate tasks."""

import logging
import traceback
from uuid import UUID

from repo_migrator.core.errors import (
    MigrationError,
    NotFoundError,
    PersistenceError,
    RepositoryError,
    TaskCrashError,
    TaskCreationError,
)
from repo_migrator.models import (
    MigrateOptions,
    Repository,
    RepositoryStatus,
    Task,
    TaskStatus,
    TaskType,
    User,
)
from repo_migrator.services.classifier import classify_error
from repo_migrator.services.compensation import delete_orphaned_repository
from repo_migrator.services.git import GitMigrator
from repo_migrator.services.state import TaskStateMachine
from repo_migrator.services.store import CreateRepoOptions, SQLTaskStore, TaskStore

logger = logging.getLogger(__name__)

# Failures a migration is expected to run into. Anything else is a crash.
EXPECTED_ERRORS = (MigrationError, RepositoryError, PersistenceError, NotFoundError)


def render_crash(exc: BaseException) -> str:
    """Describe an unexpected fault with its full traceback."""
    trace = "".join(traceback.format_exception(exc)).rstrip()
    return f"Handler crashed with error: {exc!r}\n{trace}"


class MigrateTaskRunner:
    """Creates migrate tasks and runs them to a terminal state.

    A run never leaves its task in the running state and never lets a fault
    inside the migration escape to the worker process.
    """

    def __init__(self, store: TaskStore, migrator):
        self.store = store
        self.migrator = migrator
        self.state = TaskStateMachine(store)

    @classmethod
    def default(cls) -> "MigrateTaskRunner":
        """Build a runner over the database and git."""
        store = SQLTaskStore()
        return cls(store, GitMigrator(store))

    def create_migrate_task(
        self, doer: User, owner: User, opts: MigrateOptions
    ) -> Task:
        """Create a queued migrate task and its placeholder repository.

        Raises:
            PersistenceError: If the task record cannot be created or linked
            TaskCreationError: If the repository cannot be created; the task
                is saved as failed and nothing needs cleaning up
        """
        task = Task(
            doer_id=doer.id,
            owner_id=owner.id,
            type=TaskType.MIGRATE_REPO,
            status=TaskStatus.QUEUED,
            payload_content=opts.encode(),
        )
        task = self.store.create_task(task)

        try:
            repo = self.store.create_repository(
                doer,
                owner,
                CreateRepoOptions(
                    name=opts.name,
                    description=opts.description,
                    is_private=opts.private,
                    is_mirror=opts.mirror,
                    status=RepositoryStatus.BEING_MIGRATED,
                ),
            )
        except Exception as e:
            message = classify_error(
                e, owner, opts.remote_url, opts.auth_password, opts.auth_username
            )
            self.state.fail(task, message)
            raise TaskCreationError(task, message) from e

        task.repo_id = repo.id
        self.store.update_columns(task, "repo_id")

        logger.info(f"Migrate task {task.id} queued for {owner.name}/{repo.name}")
        return task

    def enqueue(self, doer_id: UUID, owner_id: UUID, opts: MigrateOptions) -> Task:
        """Create a migrate task and dispatch it to a worker."""
        doer = self.store.load_user(doer_id)
        owner = self.store.load_user(owner_id)
        task = self.create_migrate_task(doer, owner, opts)

        from repo_migrator.tasks import run_migrate_task

        run_migrate_task.delay(str(task.id))
        return task

    def _load_repo(self, task: Task) -> Repository:
        if task.repo_id is None:
            raise NotFoundError(f"Task {task.id} has no repository to migrate into")
        return self.store.load_repo(task.repo_id)

    def run(self, task_id: UUID) -> Task:
        """Run a queued migrate task once.

        Returns:
            The task in its final state

        Raises:
            NotFoundError: If the task does not exist
            ConfigurationError: If the task payload cannot be decoded
        """
        task = self.store.load_task(task_id)
        opts = MigrateOptions.decode(task.payload_content)

        if task.status != TaskStatus.QUEUED:
            logger.warning(
                f"Task {task.id} is {TaskStatus(task.status).name}, not running it again"
            )
            return task

        doer = owner = None
        try:
            repo = self._load_repo(task)
            doer = self.store.load_user(task.doer_id)
            owner = self.store.load_user(task.owner_id)

            self.state.begin(task)
            repo = self.migrator.migrate_repository_data(doer, owner, repo, opts)

            logger.info(f"Repository migrated [{repo.id}]: {owner.name}/{repo.name}")
            self.state.succeed(task)
            return task
        except EXPECTED_ERRORS as e:
            error = e
        except Exception as e:
            logger.exception(f"Migrate task {task.id} crashed")
            error = TaskCrashError(render_crash(e))

        message = classify_error(
            error, owner, opts.remote_url, opts.auth_password, opts.auth_username
        )
        self.state.fail(task, message)
        delete_orphaned_repository(self.store, task, doer)
        return task
