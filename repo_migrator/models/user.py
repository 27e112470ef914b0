"""User model."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, String
from sqlmodel import Field, SQLModel

from repo_migrator.core.config import settings


class User(SQLModel, table=True):
    """An account that triggers migrations or owns repositories."""

    __tablename__ = "users"

    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        description="Unique identifier for the user",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True)),
        description="Timestamp when the user was created",
    )
    name: str = Field(
        sa_column=Column(String, unique=True, index=True, nullable=False),
        description="Login name",
    )
    max_repo_creation: int = Field(
        default=-1,
        description="Repository limit for this user, -1 to use the global default",
    )

    def max_creation_limit(self) -> int:
        """Effective repository limit; negative means unlimited."""
        if self.max_repo_creation <= -1:
            return settings.max_creation_limit
        return self.max_repo_creation

    def can_create_repo(self, num_repos: int) -> bool:
        """Check whether one more repository fits within the limit."""
        limit = self.max_creation_limit()
        if limit <= -1:
            return True
        return num_repos < limit
