# =============================================================================
# core/models/job.py - Background Job Schemas
# =============================================================================
# These models describe work handed to the background queue:
# - JobOptions: retry and cleanup policy requested at enqueue time
# - JobRecord: one job as seen by a worker
# - JobState: lifecycle states of a job
# - WelcomeJobResult: output of the welcome worker
#
# Lifecycle:
#   queued -> processing -> completed
#                        -> failed (attempt < attempts_allowed) -> processing
#                        -> failed (terminal)
# =============================================================================

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from app.config import Settings


WELCOME_USER_JOB = "process-welcome-user"


class JobState(str, Enum):
    """Possible states of a background job."""
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class JobOptions(BaseModel):
    """
    Retry and cleanup policy for one job.

    Backoff itself is computed by the queue backend; these values only
    parameterize it.
    """

    attempts: int = Field(
        default=3,
        ge=1,
        description="Total processing attempts, first run included"
    )

    remove_on_complete: bool = Field(
        default=True,
        description="Discard the stored result once the job completes"
    )

    remove_on_fail: bool = Field(
        default=True,
        description="Discard the stored result once the job finally fails"
    )

    backoff_factor: int = Field(default=5, ge=1, description="Base retry delay (seconds)")
    backoff_max: int = Field(default=600, ge=1, description="Maximum retry delay (seconds)")

    @classmethod
    def from_settings(cls, settings: Settings) -> JobOptions:
        """Build the default job policy from configuration."""
        return cls(
            attempts=settings.JOB_ATTEMPTS,
            remove_on_complete=settings.JOB_REMOVE_ON_COMPLETE,
            remove_on_fail=settings.JOB_REMOVE_ON_FAIL,
            backoff_factor=settings.JOB_BACKOFF_FACTOR,
            backoff_max=settings.JOB_BACKOFF_MAX,
        )


class JobRecord(BaseModel):
    """
    One background task as handed to a worker.

    The queue owns the job from enqueue until it reaches a terminal state.
    """

    job_id: str | None = Field(default=None, description="Identifier assigned by the queue")
    job_name: str = Field(..., description="Job identifier, e.g. process-welcome-user")

    # Opaque to the queue; the welcome worker needs metadata.user.name
    payload: dict[str, Any] = Field(default_factory=dict)

    attempts_allowed: int = Field(default=3, ge=1)
    attempts_made: int = Field(default=0, ge=0)
    remove_on_complete: bool = True
    remove_on_fail: bool = True
    state: JobState = JobState.QUEUED

    @property
    def is_last_attempt(self) -> bool:
        """True when a failure of the current attempt is terminal."""
        return self.attempts_made + 1 >= self.attempts_allowed


class WelcomeJobResult(BaseModel):
    """Result of processing one welcome job."""

    job_id: str | None = Field(default=None, description="Processed job id")
    message: str = Field(..., description="Welcome message")
