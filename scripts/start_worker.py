#!/usr/bin/env python3
# =============================================================================
# scripts/start_worker.py - Celery Worker Entry Point
# =============================================================================
# Starts a Celery worker that processes welcome jobs.
#
# Usage:
#   python scripts/start_worker.py
#   python scripts/start_worker.py --concurrency=4
#
#   # Or use Celery CLI directly
#   celery -A workers.celery_app worker -Q welcome-user,default --loglevel=info
#
# Prerequisites:
#   - Redis must be running (REDIS_HOST/REDIS_PORT or REDIS_URL)
# =============================================================================

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from workers.celery_app import celery_app

QUEUES = ("welcome-user", "default")


def main(extra_args: list[str]):
    """Start the worker; extra CLI arguments are passed through to Celery."""
    print(f"User Service worker consuming {', '.join(QUEUES)} (Ctrl+C to stop)")

    celery_app.worker_main([
        "worker",
        "--loglevel=info",
        f"--queues={','.join(QUEUES)}",
        *(extra_args or ["--concurrency=2"]),
    ])


if __name__ == "__main__":
    main(sys.argv[1:])
