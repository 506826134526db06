# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and task definitions for
# background processing of welcome jobs.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (welcome job)
# - config.py: Worker-specific settings
#
# Usage:
#   # Start worker
#   celery -A workers.celery_app worker -Q welcome-user,default --loglevel=info
#
#   # Or use the script
#   python scripts/start_worker.py
#
#   # Jobs are submitted by name through lib.job_queue.JobQueue
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
