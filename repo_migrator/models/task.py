"""Task model for repository migrations."""

from datetime import UTC, datetime
from enum import IntEnum
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, Integer, Text
from sqlmodel import Field, SQLModel


class TaskType(IntEnum):
    """Kind of work a task performs."""

    MIGRATE_REPO = 0


class TaskStatus(IntEnum):
    """Persisted task status codes.

    The values are stored in the database and must never change. Code 2 is
    reserved for a stopped state that the migration engine does not use.
    """

    QUEUED = 0
    RUNNING = 1
    FAILED = 3
    FINISHED = 4


class Task(SQLModel, table=True):
    """One asynchronous repository migration job."""

    __tablename__ = "tasks"

    # Primary key and timestamps
    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        description="Unique identifier for the task",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True)),
        description="Timestamp when the task was created",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True)),
        description="Timestamp when the task was last updated",
    )

    # Associations
    doer_id: UUID = Field(
        foreign_key="users.id",
        description="User who triggered the migration",
    )
    owner_id: UUID = Field(
        foreign_key="users.id",
        description="Account that will own the migrated repository",
    )
    # Plain column: the repository may be deleted while the task is kept for audit
    repo_id: UUID | None = Field(
        default=None, description="Placeholder repository created for this task"
    )

    # Task fields
    type: int = Field(
        default=TaskType.MIGRATE_REPO,
        sa_column=Column(Integer, nullable=False),
        description="Task type code",
    )
    status: int = Field(
        default=TaskStatus.QUEUED,
        sa_column=Column(Integer, index=True, nullable=False),
        description="Task status code: 0 queued, 1 running, 3 failed, 4 finished",
    )
    payload_content: str = Field(
        default="",
        sa_column=Column(Text, nullable=False),
        description="Serialized migrate options",
    )
    start_time: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True)),
        description="Timestamp when execution started",
    )
    end_time: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True)),
        description="Timestamp when the task failed or finished",
    )
    errors: str = Field(
        default="",
        sa_column=Column(Text, nullable=False),
        description="User-facing error message of a failed task",
    )
