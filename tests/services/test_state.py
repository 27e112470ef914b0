"""Tests for TaskStateMachine."""

import logging

import pytest

from repo_migrator.core.errors import InvalidTransitionError, PersistenceError
from repo_migrator.models import Task, TaskStatus
from repo_migrator.services.state import TaskStateMachine, transition
from tests.conftest import make_options
from tests.fakes import InMemoryTaskStore


@pytest.fixture
def fake_store():
    return InMemoryTaskStore()


@pytest.fixture
def queued_task(fake_store):
    user = fake_store.add_user()
    task = Task(
        doer_id=user.id,
        owner_id=user.id,
        payload_content=make_options(auth_password="hunter2").encode(),
    )
    return fake_store.create_task(task)


@pytest.mark.parametrize(
    "current,target",
    [
        (TaskStatus.QUEUED, TaskStatus.RUNNING),
        (TaskStatus.QUEUED, TaskStatus.FAILED),
        (TaskStatus.RUNNING, TaskStatus.FAILED),
        (TaskStatus.RUNNING, TaskStatus.FINISHED),
    ],
)
def test_allowed_transitions(current, target):
    """Test the forward transitions of the task lifecycle."""
    assert transition(current, target) is target


@pytest.mark.parametrize(
    "current,target",
    [
        (TaskStatus.QUEUED, TaskStatus.FINISHED),
        (TaskStatus.RUNNING, TaskStatus.QUEUED),
        (TaskStatus.FAILED, TaskStatus.RUNNING),
        (TaskStatus.FINISHED, TaskStatus.FAILED),
        (TaskStatus.FINISHED, TaskStatus.FINISHED),
    ],
)
def test_rejected_transitions(current, target):
    """Test that transitions never skip or reverse."""
    with pytest.raises(InvalidTransitionError) as exc_info:
        transition(current, target)

    assert exc_info.value.current is current
    assert exc_info.value.target is target


def test_transition_accepts_stored_codes():
    """Test statuses loaded as plain integers are understood."""
    assert transition(0, TaskStatus.RUNNING) is TaskStatus.RUNNING


def test_begin(fake_store, queued_task):
    """Test beginning a queued task."""
    TaskStateMachine(fake_store).begin(queued_task)

    saved = fake_store.saved_task(queued_task.id)
    assert saved.status == TaskStatus.RUNNING
    assert saved.start_time is not None
    assert saved.end_time is None


def test_begin_persistence_failure(fake_store, queued_task):
    """Test a failed begin raises and leaves the task queued."""
    fake_store.failing_columns = {"start_time"}

    with pytest.raises(PersistenceError):
        TaskStateMachine(fake_store).begin(queued_task)

    assert queued_task.status == TaskStatus.QUEUED
    assert queued_task.start_time is None
    assert fake_store.saved_task(queued_task.id).status == TaskStatus.QUEUED


def test_succeed(fake_store, queued_task):
    """Test finishing a running task drops its stored password."""
    machine = TaskStateMachine(fake_store)
    machine.begin(queued_task)

    assert machine.succeed(queued_task) is True

    saved = fake_store.saved_task(queued_task.id)
    assert saved.status == TaskStatus.FINISHED
    assert saved.end_time is not None
    assert saved.errors == ""
    assert "hunter2" not in saved.payload_content


def test_succeed_persistence_failure(fake_store, queued_task, caplog):
    """Test a failed save of success is only a warning."""
    machine = TaskStateMachine(fake_store)
    machine.begin(queued_task)
    fake_store.fail_finish = True

    with caplog.at_level(logging.WARNING):
        assert machine.succeed(queued_task) is False

    assert queued_task.status == TaskStatus.FINISHED
    assert "could not be saved" in caplog.text


def test_succeed_requires_running(fake_store, queued_task):
    """Test a queued task cannot finish without running."""
    with pytest.raises(InvalidTransitionError):
        TaskStateMachine(fake_store).succeed(queued_task)


def test_fail(fake_store, queued_task):
    """Test failing a running task records the message and end time."""
    machine = TaskStateMachine(fake_store)
    machine.begin(queued_task)

    assert machine.fail(queued_task, "Migration failed: fatal: nope") is True

    saved = fake_store.saved_task(queued_task.id)
    assert saved.status == TaskStatus.FAILED
    assert saved.errors == "Migration failed: fatal: nope"
    assert saved.end_time is not None


def test_fail_from_queued(fake_store, queued_task):
    """Test a task can fail before it ever runs."""
    assert TaskStateMachine(fake_store).fail(queued_task, "boom") is True

    saved = fake_store.saved_task(queued_task.id)
    assert saved.status == TaskStatus.FAILED
    assert saved.start_time is None


def test_fail_never_records_empty_errors(fake_store, queued_task):
    """Test a failed task always carries an error message."""
    TaskStateMachine(fake_store).fail(queued_task, "")

    assert fake_store.saved_task(queued_task.id).errors == "unknown error"


def test_fail_persistence_failure(fake_store, queued_task, caplog):
    """Test a failed save of failure is logged, not raised."""
    fake_store.failing_columns = {"errors"}

    with caplog.at_level(logging.ERROR):
        assert TaskStateMachine(fake_store).fail(queued_task, "boom") is False

    assert fake_store.saved_task(queued_task.id).status == TaskStatus.QUEUED
    assert "could not be saved" in caplog.text


def test_fail_after_finish_rejected(fake_store, queued_task):
    """Test a finished task cannot become failed."""
    machine = TaskStateMachine(fake_store)
    machine.begin(queued_task)
    machine.succeed(queued_task)

    with pytest.raises(InvalidTransitionError):
        machine.fail(queued_task, "too late")


def test_succeed_unexpected_error_leaves_task_running(fake_store, queued_task, mocker):
    """Test an unexpected error while finishing is raised with the task still running."""
    machine = TaskStateMachine(fake_store)
    machine.begin(queued_task)
    mocker.patch.object(fake_store, "finish_task", side_effect=ValueError("bad payload"))

    with pytest.raises(ValueError):
        machine.succeed(queued_task)

    assert queued_task.status == TaskStatus.RUNNING
    assert queued_task.end_time is None
    assert machine.fail(queued_task, "boom") is True
    assert fake_store.saved_task(queued_task.id).status == TaskStatus.FAILED
