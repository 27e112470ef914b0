"""Pytest configuration and fixtures."""

import os

# Set test environment before the application reads its settings
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = os.getenv("TEST_DATABASE_URL", "sqlite://")
os.environ["MAX_CREATION_LIMIT"] = "-1"

import pytest  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import repo_migrator.models  # noqa: E402, F401
from repo_migrator.core.database import (  # noqa: E402
    clean_database,
    close_db,
    get_engine,
    get_session,
)
from repo_migrator.models import MigrateOptions, User  # noqa: E402
from repo_migrator.services import MigrateTaskRunner, SQLTaskStore  # noqa: E402


def create_test_user(name: str = "alice", max_repo_creation: int = -1) -> User:
    """Helper function to create a user with default values."""
    with get_session() as session:
        user = User(name=name, max_repo_creation=max_repo_creation)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user


def make_options(**overrides) -> MigrateOptions:
    """Helper function to build migrate options with default values."""
    values = {
        "remote_url": "https://example.com/upstream/foo.git",
        "name": "foo",
        "description": "Imported foo",
        "private": False,
        "mirror": False,
    }
    values.update(overrides)
    return MigrateOptions(**values)


@pytest.fixture(autouse=True, scope="function")
def mock_celery_task(mocker):
    """Mock Celery task dispatch for all tests."""
    return mocker.patch("repo_migrator.tasks.migrate.run_migrate_task.delay")


@pytest.fixture(autouse=True, scope="function")
def clean_db():
    """Initialize and clean database for each test."""
    # Create tables
    engine = get_engine()
    SQLModel.metadata.create_all(engine)

    # Clean all tables before test to ensure isolation
    clean_database()

    yield

    # Close DB connections
    close_db()


@pytest.fixture(scope="function")
def store(tmp_path):
    """Provide the database-backed task store with repositories under tmp_path."""
    return SQLTaskStore(repository_root=tmp_path)


@pytest.fixture(scope="function")
def migrator(mocker):
    """Provide an import collaborator that succeeds without cloning."""
    migrator = mocker.Mock()
    migrator.migrate_repository_data.side_effect = (
        lambda doer, owner, repo, opts: repo
    )
    return migrator


@pytest.fixture(scope="function")
def runner(store, migrator):
    """Provide a runner over the database store and the fake migrator."""
    return MigrateTaskRunner(store, migrator)


@pytest.fixture(scope="function")
def owner():
    """Provide the default repository owner, who also triggers migrations."""
    return create_test_user()
