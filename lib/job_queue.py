# =============================================================================
# lib/job_queue.py - Background Job Queue
# =============================================================================
# Thin wrapper that admits jobs into the Celery/Redis queue.
#
# - Job names ("process-welcome-user") map to registered Celery task names
# - Retry/cleanup options travel with the message; the worker applies them
# - Failures are reported as typed errors, never as matched strings
#
# Enqueue never retries itself. Retries only happen while processing.
#
# Usage:
#   queue = JobQueue(celery_app)
#   job_id = queue.enqueue("process-welcome-user", payload, JobOptions())
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from kombu.exceptions import OperationalError
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from core.models.job import WELCOME_USER_JOB, JobOptions

logger = logging.getLogger(__name__)


# Job name -> (Celery task name, queue)
JOB_ROUTES: dict[str, tuple[str, str]] = {
    WELCOME_USER_JOB: ("workers.tasks.process_welcome_user", "welcome-user"),
}


# =============================================================================
# Errors
# =============================================================================

class JobQueueError(Exception):
    """
    Error while admitting a job into the queue.

    Subclasses tell the caller which kind of failure happened.
    """

    def __init__(
        self,
        message: str,
        code: str = "QUEUE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class QueueNotInitializedError(JobQueueError):
    """The queue has no backend, or the job name is not routed."""

    def __init__(self, job_name: str):
        super().__init__(
            message=f"Queue is not properly initialized for job '{job_name}'",
            code="QUEUE_NOT_INITIALIZED",
            suggestion="Check the Celery configuration and JOB_ROUTES",
            details={"job_name": job_name},
        )


class QueueConnectionError(JobQueueError):
    """The broker could not be reached."""

    def __init__(self, job_name: str, error: str):
        super().__init__(
            message=f"Failed to connect to the queue: {error}",
            code="QUEUE_CONNECTION_FAILED",
            suggestion="Check REDIS_HOST/REDIS_PORT and that Redis is running",
            details={"job_name": job_name},
        )


class QueueEnqueueError(JobQueueError):
    """Any other failure while adding a job."""

    def __init__(self, job_name: str, error: str):
        super().__init__(
            message=f"An unexpected error occurred while adding the job to the queue: {error}",
            code="QUEUE_ENQUEUE_FAILED",
            details={"job_name": job_name},
        )


# =============================================================================
# Queue
# =============================================================================

class JobQueue:
    """
    Admits named jobs into the Celery queue.

    The queue owns a job from the moment enqueue returns until the job
    reaches a terminal state.
    """

    def __init__(self, celery_app: Any | None, routes: dict[str, tuple[str, str]] | None = None):
        self._celery_app = celery_app
        self._routes = routes if routes is not None else JOB_ROUTES

    def enqueue(
        self,
        job_name: str,
        payload: dict[str, Any],
        options: JobOptions | None = None,
    ) -> str:
        """
        Add a job to the queue.

        Args:
            job_name: Routed job name, e.g. "process-welcome-user"
            payload: JSON-serializable job data
            options: Retry and cleanup policy (defaults: 3 attempts, remove on complete/fail)

        Returns:
            The job id assigned by the queue

        Raises:
            QueueNotInitializedError: No backend configured or unknown job name
            QueueConnectionError: The broker is unreachable
            QueueEnqueueError: Any other failure
        """
        options = options or JobOptions()

        route = self._routes.get(job_name)
        if self._celery_app is None or route is None:
            raise QueueNotInitializedError(job_name)

        task_name, queue_name = route
        logger.info(f"Adding job to queue: {job_name}")

        try:
            result = self._celery_app.send_task(
                task_name,
                kwargs={
                    "job_name": job_name,
                    "payload": payload,
                    "options": options.model_dump(),
                },
                queue=queue_name,
            )
        except (OperationalError, RedisConnectionError, RedisTimeoutError, ConnectionError) as e:
            logger.error(f"Failed to add job to queue: {e}")
            raise QueueConnectionError(job_name, str(e)) from e
        except Exception as e:
            logger.error(f"Failed to add job to queue: {e}")
            raise QueueEnqueueError(job_name, str(e)) from e

        logger.info(f"Job added to queue successfully: ID {result.id}")
        return str(result.id)
