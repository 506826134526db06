# =============================================================================
# core/services/welcome_worker.py - Welcome Job Processing
# =============================================================================
# Framework-free logic behind the "process-welcome-user" job:
# - process(): validate the payload and build the welcome message
# - on_completed() / on_failed(): lifecycle hooks fired by the queue
#
# Failures are split in two kinds:
# - PermanentJobError: bad data, retrying cannot help, fail right away
# - anything else: transient, the queue retries up to the attempt budget
#
# The Celery adapter lives in workers/tasks.py.
# =============================================================================

import json
import logging
from typing import Any

from core.models.job import JobRecord, WelcomeJobResult

logger = logging.getLogger(__name__)


class PermanentJobError(Exception):
    """A job failure that no number of retries can fix."""


class InvalidJobPayloadError(PermanentJobError):
    """The job payload lacks the data the worker needs."""

    def __init__(self, job_id: str | None, reason: str = "missing metadata.user.name"):
        super().__init__(f"Invalid job data for job {job_id}: {reason}")
        self.job_id = job_id


def welcome_message(name: str) -> str:
    """Build the welcome message for a user name."""
    return f"Welcome to the platform, {name}!"


class WelcomeUserWorker:
    """Processes welcome jobs and reports their outcome."""

    def process(self, job: JobRecord) -> WelcomeJobResult:
        """
        Build the welcome message for the user carried by the job.

        Args:
            job: Job whose payload has metadata.user.name

        Returns:
            WelcomeJobResult with the job id and message

        Raises:
            InvalidJobPayloadError: The payload has no usable user name
        """
        name = _user_name(job.payload)
        if name is None:
            logger.error(f"Error during job processing {job.job_id}: invalid job data")
            raise InvalidJobPayloadError(job.job_id)

        message = welcome_message(name)
        logger.info(f"Job {job.job_id} processed successfully with message: {message}")
        return WelcomeJobResult(job_id=job.job_id, message=message)

    def on_completed(self, job_id: str | None, result: Any) -> None:
        """Log a completed job. Never raises."""
        try:
            if isinstance(result, WelcomeJobResult):
                result = result.model_dump()
            logger.info(f"Job {job_id} completed successfully with result: {json.dumps(result, default=str)}")
        except Exception as e:
            logger.error(f"Error during job completion event for job {job_id}: {e}")

    def on_failed(self, job_id: str | None, error: BaseException) -> None:
        """Log a job that failed its final attempt. Never raises."""
        try:
            logger.error(f"Job {job_id} failed with error: {error}")
        except Exception as e:
            logger.error(f"Error during job failure event for job {job_id}: {e}")


def _user_name(payload: Any) -> str | None:
    """Return payload.metadata.user.name when it is a non-empty string."""
    try:
        name = payload["metadata"]["user"]["name"]
    except (KeyError, TypeError):
        return None
    if not isinstance(name, str) or not name:
        return None
    return name
