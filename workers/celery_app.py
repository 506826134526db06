# =============================================================================
# workers/celery_app.py - Celery Application Configuration
# =============================================================================
# This module creates the Celery application the welcome worker runs on and
# the API enqueues into (through lib.job_queue.JobQueue).
#
# Usage:
#   # Start worker
#   celery -A workers.celery_app worker -Q welcome-user,default --loglevel=info
#
#   # Check status
#   celery -A workers.celery_app status
# =============================================================================

import logging

from celery import Celery
from celery.signals import task_failure, task_postrun, task_prerun, worker_ready
from dotenv import load_dotenv

from app.config import Settings, get_settings
from workers.config import CeleryConfig

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_celery_app(settings: Settings) -> Celery:
    """
    Create the Celery application for the given settings.

    Redis serves as both broker and result backend. Result cleanup follows
    each job's remove_on_complete / remove_on_fail options.

    Args:
        settings: Application settings (Redis location)

    Returns:
        Configured Celery app instance
    """
    app = Celery(
        "user_service_worker",
        broker=settings.redis_url,
        backend=settings.redis_url,
        include=["workers.tasks"],
    )
    app.config_from_object(CeleryConfig(settings))

    logger.info(f"Celery app created with broker: {_redact(settings.redis_url)}")
    return app


def _redact(url: str) -> str:
    """Drop credentials from a broker URL before logging it."""
    return url.split("@")[-1] if "@" in url else url


celery_app = create_celery_app(get_settings())


# =============================================================================
# Celery Signals (Lifecycle Hooks)
# =============================================================================
# Task kwargs carry job_name, so logs name the job rather than the task.

def _job_name(task, kwargs) -> str:
    return (kwargs or {}).get("job_name") or getattr(task, "name", "unknown")


@worker_ready.connect
def worker_ready_handler(sender=None, **extra):
    """Log the queues the worker consumes once it is ready."""
    queues = sorted(queue.name for queue in sender.app.amqp.queues.consume_from.values())
    logger.info(f"Worker ready, consuming from: {', '.join(queues)}")


@task_prerun.connect
def task_prerun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, **extra):
    """Log when a job starts an attempt."""
    retries = (task.request.retries or 0) if task is not None else 0
    logger.info(f"Job started: {_job_name(task, kwargs)} [{task_id}] attempt {retries + 1}")


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, retval=None, state=None, **extra):
    """Log the state an attempt ended in."""
    logger.info(f"Job attempt finished: {_job_name(task, kwargs)} [{task_id}] - State: {state}")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, kwargs=None, **extra):
    """Log when a job fails for good."""
    logger.error(f"Job failed: {_job_name(sender, kwargs)} [{task_id}] - Error: {exception}")


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    celery_app.start()
