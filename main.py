#!/usr/bin/env python3
"""
Main entrypoint for the CyberVidya Attendance Tracker.

Run with environment toggles to choose which components start:
 - ENABLE_BACKEND_API: start API (defaults to true)
 - ENABLE_BACKEND_WEB: mount & serve static frontend (defaults to true)

Examples:
    # Run the API only, without serving the frontend
    export ENABLE_BACKEND_WEB=false
    uv run main.py
"""
import uvicorn
from dotenv import load_dotenv

# Load .env before backend.core reads settings
load_dotenv()

from backend.core import settings  # noqa: E402
from backend.engine.stream import app_logger  # noqa: E402


def main() -> None:
    if not settings.ENABLE_BACKEND_API:
        app_logger.info("API server disabled (ENABLE_BACKEND_API set to false)")
        return

    if settings.ENABLE_BACKEND_WEB:
        app_logger.info(f"Starting web + API server on port {settings.PORT}...")
    else:
        app_logger.info(f"Starting API server (frontend disabled) on port {settings.PORT}...")

    uvicorn.run(
        "backend.api.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
