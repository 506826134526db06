# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Defines background tasks run by the Celery worker.
#
# Tasks:
# - process_welcome_user: build the welcome message for a new user
#
# Retry policy:
# - PermanentJobError (bad payload): fail immediately, no retry
# - anything else: retry with Celery's exponential backoff until the job's
#   attempt budget is spent, then fail
#
# on_failure only fires once the job is terminally failed; intermediate
# failures go through on_retry.
# =============================================================================

import logging
from typing import Any

from celery import Task, shared_task
from celery.utils.time import get_exponential_backoff_interval

from core.models.job import JobOptions, JobRecord, JobState
from core.services.welcome_worker import PermanentJobError, WelcomeUserWorker

logger = logging.getLogger(__name__)

welcome_worker = WelcomeUserWorker()


def _job_options(kwargs: dict[str, Any] | None) -> JobOptions:
    """Read the job policy shipped with the message."""
    return JobOptions.model_validate((kwargs or {}).get("options") or {})


def retry_countdown(retries: int, options: JobOptions) -> int:
    """Seconds to wait before the next attempt, per Celery's backoff policy."""
    return get_exponential_backoff_interval(
        factor=options.backoff_factor,
        retries=retries,
        maximum=options.backoff_max,
        full_jitter=True,
    )


class WelcomeUserTask(Task):
    """Task base class wiring Celery lifecycle events to the welcome worker."""

    def on_success(self, retval, task_id, args, kwargs):
        welcome_worker.on_completed(task_id, retval)
        if _job_options(kwargs).remove_on_complete:
            self._discard_result(task_id)

    def on_retry(self, exc, task_id, args, kwargs, einfo):
        logger.warning(f"Job {task_id} attempt failed, retrying: {exc}")

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        welcome_worker.on_failed(task_id, exc)
        if _job_options(kwargs).remove_on_fail:
            self._discard_result(task_id)

    def _discard_result(self, task_id: str) -> None:
        """Drop the stored result so finished jobs do not accumulate."""
        if self.request.is_eager:
            # Eager runs never reach the result backend
            return
        try:
            self.AsyncResult(task_id).forget()
        except Exception as e:
            logger.warning(f"Could not discard result of job {task_id}: {e}")


@shared_task(bind=True, base=WelcomeUserTask, name="workers.tasks.process_welcome_user")
def process_welcome_user(
    self,
    job_name: str,
    payload: dict[str, Any],
    options: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Process one welcome job.

    Args:
        job_name: Job name the message was enqueued under
        payload: Job data; must carry metadata.user.name
        options: Serialized JobOptions

    Returns:
        Dict with:
        - job_id: The Celery task id
        - message: "Welcome to the platform, <name>!"

    Raises:
        InvalidJobPayloadError: Payload has no user name (not retried)
        celery.exceptions.Retry: A transient failure with attempts left
    """
    job_options = JobOptions.model_validate(options or {})
    job = JobRecord(
        job_id=self.request.id,
        job_name=job_name,
        payload=payload,
        attempts_allowed=job_options.attempts,
        attempts_made=self.request.retries or 0,
        remove_on_complete=job_options.remove_on_complete,
        remove_on_fail=job_options.remove_on_fail,
        state=JobState.PROCESSING,
    )

    try:
        result = welcome_worker.process(job)
    except PermanentJobError:
        raise
    except Exception as exc:
        if job.is_last_attempt:
            raise
        raise self.retry(
            exc=exc,
            countdown=retry_countdown(job.attempts_made, job_options),
            max_retries=job_options.attempts - 1,
        )

    return result.model_dump()
