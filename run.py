#!/usr/bin/env python3
"""
Production startup script for the HeartBeat API
"""
import uvicorn
import os
import sys
from heartbeat.core.config import settings
from heartbeat.core.logging import logger

def main():
    """Start the FastAPI application."""

    log_dir = os.path.dirname(settings.LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logger.info(f"Starting {settings.APP_NAME} Server")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug Mode: {settings.DEBUG}")
    logger.info(f"Database: {'SQLite' if settings.is_sqlite else 'PostgreSQL'}")

    config = {
        "app": "heartbeat.main:app",
        "host": settings.HOST,
        "port": settings.PORT,
        "reload": settings.DEBUG,
        "log_level": settings.LOG_LEVEL.lower(),
        "access_log": True,
        "use_colors": settings.DEBUG,
    }

    # The realtime hub lives in process memory, so every socket and every
    # write has to go through the same worker
    if not settings.DEBUG:
        if settings.WORKERS > 1:
            logger.warning(f"WORKERS={settings.WORKERS} ignored; realtime delivery needs a single worker")
        config.update({
            "loop": "uvloop",
            "http": "httptools",
            "lifespan": "on",
        })

    logger.info(f"Starting server on {config['host']}:{config['port']}")

    try:
        uvicorn.run(**config)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
