"""Persistence port for migrate tasks and its SQL implementation."""

import logging
import shutil
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from repo_migrator.core.config import settings
from repo_migrator.core.database import get_session
from repo_migrator.core.errors import (
    NamePatternNotAllowedError,
    NameReservedError,
    NotFoundError,
    PersistenceError,
    ReachLimitOfRepoError,
    RepoAlreadyExistError,
)
from repo_migrator.models import (
    MigrateOptions,
    Repository,
    RepositoryStatus,
    Task,
    TaskStatus,
    User,
    repository_path,
)

logger = logging.getLogger(__name__)

RESERVED_REPO_NAMES = frozenset({".", ".."})
RESERVED_REPO_PATTERNS = ("*.git", "*.wiki")


@dataclass(frozen=True)
class CreateRepoOptions:
    """Attributes of a repository record to create."""

    name: str
    description: str = ""
    is_private: bool = False
    is_mirror: bool = False
    status: RepositoryStatus = RepositoryStatus.READY


class TaskStore(Protocol):
    """Storage operations the migration engine depends on."""

    def load_task(self, task_id: UUID) -> Task: ...

    def load_repo(self, repo_id: UUID) -> Repository: ...

    def load_user(self, user_id: UUID) -> User: ...

    def create_task(self, task: Task) -> Task: ...

    def update_columns(self, task: Task, *columns: str) -> None: ...

    def finish_task(self, task: Task) -> None: ...

    def create_repository(
        self, doer: User, owner: User, options: CreateRepoOptions
    ) -> Repository: ...

    def mark_repository_ready(self, repo: Repository, is_mirror: bool) -> Repository: ...

    def delete_repository(
        self, doer: User | None, owner_id: UUID, repo_id: UUID
    ) -> None: ...


def check_repo_name(name: str) -> None:
    """Reject reserved repository names and name patterns.

    Raises:
        NameReservedError: If the name is reserved
        NamePatternNotAllowedError: If the name matches a reserved pattern
    """
    lower_name = name.lower()
    if lower_name in RESERVED_REPO_NAMES:
        raise NameReservedError(name)

    for pattern in RESERVED_REPO_PATTERNS:
        if pattern.startswith("*") and lower_name.endswith(pattern[1:]):
            raise NamePatternNotAllowedError(pattern)
        if pattern.endswith("*") and lower_name.startswith(pattern[:-1]):
            raise NamePatternNotAllowedError(pattern)


@contextmanager
def _persisting(action: str):
    """Open a session and wrap database failures in PersistenceError."""
    try:
        with get_session() as session:
            yield session
    except SQLAlchemyError as e:
        raise PersistenceError(f"{action}: {e}") from e


class SQLTaskStore:
    """TaskStore backed by the SQLModel database.

    Repository files live under ``repository_root`` and are removed together
    with their record.
    """

    def __init__(self, repository_root: str | Path | None = None):
        self.repository_root = Path(repository_root or settings.repository_root)

    def load_task(self, task_id: UUID) -> Task:
        with _persisting("load task") as session:
            task = session.get(Task, task_id)
        if task is None:
            raise NotFoundError(f"Task with id {task_id} not found")
        return task

    def load_repo(self, repo_id: UUID) -> Repository:
        with _persisting("load repository") as session:
            repo = session.get(Repository, repo_id)
        if repo is None:
            raise NotFoundError(f"Repository with id {repo_id} not found")
        return repo

    def load_user(self, user_id: UUID) -> User:
        with _persisting("load user") as session:
            user = session.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User with id {user_id} not found")
        return user

    def create_task(self, task: Task) -> Task:
        with _persisting("create task") as session:
            session.add(task)
            session.commit()
            session.refresh(task)
        return task

    def update_columns(self, task: Task, *columns: str) -> None:
        """Persist only the named columns of the task, plus updated_at."""
        task.updated_at = datetime.now(UTC)
        values = {column: getattr(task, column) for column in columns}
        values["updated_at"] = task.updated_at

        with _persisting(f"update task columns {', '.join(columns)}") as session:
            result = session.execute(
                update(Task).where(Task.id == task.id).values(**values)
            )
            if result.rowcount == 0:
                raise PersistenceError(f"Task with id {task.id} does not exist")

    def finish_task(self, task: Task) -> None:
        """Record a finished migration and drop its stored credentials."""
        opts = MigrateOptions.decode(task.payload_content)
        task.payload_content = opts.model_copy(update={"auth_password": ""}).encode()
        task.status = TaskStatus.FINISHED
        if task.end_time is None:
            task.end_time = datetime.now(UTC)
        self.update_columns(task, "status", "end_time", "payload_content")

    def create_repository(
        self, doer: User, owner: User, options: CreateRepoOptions
    ) -> Repository:
        """Create a repository record for the owner.

        Raises:
            ReachLimitOfRepoError: If the owner is at their repository limit
            NameReservedError: If the name is reserved
            NamePatternNotAllowedError: If the name matches a reserved pattern
            RepoAlreadyExistError: If the owner has a repository with that name
        """
        with _persisting("create repository") as session:
            num_repos = session.execute(
                select(func.count())
                .select_from(Repository)
                .where(Repository.owner_id == owner.id)
            ).scalar()
            if not owner.can_create_repo(num_repos):
                raise ReachLimitOfRepoError(owner.max_creation_limit())

            check_repo_name(options.name)

            lower_name = options.name.lower()
            existing = session.execute(
                select(Repository).where(
                    Repository.owner_id == owner.id,
                    Repository.lower_name == lower_name,
                )
            ).scalar_one_or_none()
            if existing is not None:
                raise RepoAlreadyExistError(owner.name, options.name)

            repo = Repository(
                owner_id=owner.id,
                name=options.name,
                lower_name=lower_name,
                description=options.description,
                is_private=options.is_private,
                is_mirror=options.is_mirror,
                status=options.status,
            )
            session.add(repo)
            session.commit()
            session.refresh(repo)

        logger.info(f"Repository {owner.name}/{repo.name} created by {doer.name}")
        return repo

    def mark_repository_ready(self, repo: Repository, is_mirror: bool) -> Repository:
        with _persisting("update repository") as session:
            session.execute(
                update(Repository)
                .where(Repository.id == repo.id)
                .values(status=RepositoryStatus.READY, is_mirror=is_mirror)
            )
        repo.status = RepositoryStatus.READY
        repo.is_mirror = is_mirror
        return repo

    def delete_repository(
        self, doer: User | None, owner_id: UUID, repo_id: UUID
    ) -> None:
        """Delete the owner's repository and its files.

        A missing repository is a no-op. The record is kept if its files
        cannot be removed, so the deletion can be repeated.

        Raises:
            PersistenceError: If the record or its files cannot be deleted
        """
        with _persisting("delete repository") as session:
            repo = session.execute(
                select(Repository).where(
                    Repository.id == repo_id, Repository.owner_id == owner_id
                )
            ).scalar_one_or_none()
            if repo is None:
                logger.info(f"Repository {repo_id} already deleted")
                return
            owner = session.get(User, owner_id)
            if owner is not None:
                path = repository_path(self.repository_root, owner.name, repo.lower_name)
                try:
                    if path.exists():
                        shutil.rmtree(path)
                except OSError as e:
                    raise PersistenceError(f"remove repository files {path}: {e}") from e

            session.delete(repo)

        doer_name = doer.name if doer is not None else "system"
        logger.info(f"Repository {repo_id} of owner {owner_id} deleted by {doer_name}")
