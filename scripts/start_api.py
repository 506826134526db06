#!/usr/bin/env python3
# =============================================================================
# scripts/start_api.py - API Server Entry Point
# =============================================================================
# Starts the FastAPI application with uvicorn on API_HOST:API_PORT.
#
# Usage:
#   python scripts/start_api.py
# =============================================================================

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import uvicorn

from app.config import get_settings


def main():
    """Start the API server."""
    settings = get_settings()
    print(f"User Service is running on port {settings.API_PORT}")

    # uvicorn handles SIGINT/SIGTERM and runs the app's shutdown lifespan
    uvicorn.run(
        "app.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        server_header=False,
    )


if __name__ == "__main__":
    main()
