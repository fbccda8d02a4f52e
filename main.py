"""
Lead Qualification Engine - Main Entry Point
============================================
Run this file to start the FastAPI server.

Usage:
    python main.py                              # Serve on QUALIFICATION_API_PORT (8000)
    python main.py --threshold-table enhanced   # 80/60 hot/warm cutoffs
    python main.py --reload --log-level debug   # Dev mode

Swagger UI is served at /docs and ReDoc at /redoc.
"""

import argparse
import logging
import os
import uvicorn
from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from qualification_engine.config.settings import (
    API_CONFIG,
    LOG_CONFIG,
    THRESHOLD_TABLES,
    default_threshold_table,
)
from qualification_engine.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Lead Qualification Engine API Server")
    parser.add_argument(
        "--host",
        type=str,
        default=API_CONFIG["host"],
        help=f"Host to bind the server to (default: {API_CONFIG['host']})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=API_CONFIG["port"],
        help=f"Port to run the server on (default: {API_CONFIG['port']})",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker processes (default: 1)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=LOG_CONFIG["level"],
        help=f"Log level (default: {LOG_CONFIG['level']})",
    )
    parser.add_argument(
        "--threshold-table",
        choices=sorted(THRESHOLD_TABLES),
        default=default_threshold_table(),
        help=f"Hot/warm/cold cutoffs for the default engine (default: {default_threshold_table()})",
    )

    args = parser.parse_args()

    # Default configs read this on creation, here or in reload/worker subprocesses
    os.environ["QUALIFICATION_THRESHOLD_TABLE"] = args.threshold_table

    setup_logging(args.log_level, LOG_CONFIG["file"] or None)

    # Sessions live in process memory, so more than one worker splits them
    if args.workers > 1:
        logger.warning("Sessions are held in memory per worker; use --workers 1 for session endpoints")

    logger.info(
        f"Lead Qualification Engine starting on http://{args.host}:{args.port} "
        f"(thresholds={args.threshold_table}, docs at /docs)"
    )

    uvicorn.run(
        "qualification_engine.api.endpoints:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=args.workers if not args.reload else 1,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
