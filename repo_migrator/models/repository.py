"""Repository model."""

from datetime import UTC, datetime
from enum import IntEnum
from pathlib import Path
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlmodel import Field, SQLModel


class RepositoryStatus(IntEnum):
    """Persisted repository status codes."""

    READY = 0
    BEING_MIGRATED = 1


class Repository(SQLModel, table=True):
    """A source-control repository record."""

    __tablename__ = "repositories"

    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        description="Unique identifier for the repository",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True)),
        description="Timestamp when the repository was created",
    )
    owner_id: UUID = Field(
        foreign_key="users.id",
        index=True,
        description="Account owning the repository",
    )
    name: str = Field(description="Repository name as entered")
    lower_name: str = Field(
        sa_column=Column(String, index=True, nullable=False),
        description="Lowercased name used for uniqueness checks",
    )
    description: str = Field(
        default="",
        sa_column=Column(Text, nullable=False),
        description="Repository description",
    )
    is_private: bool = Field(default=False, description="Private visibility")
    is_mirror: bool = Field(default=False, description="Pull mirror of the remote")
    status: int = Field(
        default=RepositoryStatus.READY,
        sa_column=Column(Integer, nullable=False),
        description="Repository status code: 0 ready, 1 being migrated",
    )


def repository_path(root: str | Path, owner_name: str, repo_lower_name: str) -> Path:
    """Get the on-disk location of an owner's repository."""
    return Path(root) / owner_name.lower() / f"{repo_lower_name}.git"
