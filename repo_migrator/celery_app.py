"""Celery application configuration."""

from celery import Celery
from celery.signals import after_setup_logger

from repo_migrator.core.config import settings

# Create Celery app
app = Celery("repo-migrator")

# Configure Celery
app.conf.update(
    # Broker configuration
    broker_url=settings.celery_broker_url,
    broker_connection_retry_on_startup=True,
    broker_connection_retry=True,
    broker_connection_max_retries=10,
    # Result backend - disabled (state tracked on the task record)
    result_backend=None,
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # Task execution
    task_track_started=True,
    task_acks_late=True,  # Acknowledge after task completion
    worker_prefetch_multiplier=1,  # Only fetch one task at a time
    # Task routing
    task_routes={
        "repo_migrator.tasks.migrate.*": {"queue": "migrations"},
    },
)

# Auto-discover tasks from repo_migrator.tasks module
app.autodiscover_tasks(["repo_migrator.tasks"])


@after_setup_logger.connect
def apply_log_level(logger, **kwargs):
    """Use the configured log level for the worker's root logger."""
    logger.setLevel(settings.log_level)
