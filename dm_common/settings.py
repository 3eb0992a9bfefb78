"""
Environment-based settings.

Environment Variables:
    DM_DOCKER_BINARY: Docker executable to invoke (default: docker)
    DM_POLL_INTERVAL: Seconds between wait-loop samples (default: 0.1)
    DM_SERVER_URL: Base URL of the dm-server HTTP API (default: http://localhost:8000)
    DM_LOG_LEVEL: Logging level for entrypoints (default: INFO)

Command-line options override environment variables.
"""

import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.1
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def get_docker_binary() -> str:
    """Get the docker executable from environment or use default."""
    return os.environ.get("DM_DOCKER_BINARY", "docker")


def get_poll_interval() -> float:
    """
    Get the wait-loop poll interval from environment.

    Returns:
        Seconds between samples, falling back to 0.1 on invalid values
    """
    raw = os.environ.get("DM_POLL_INTERVAL", str(DEFAULT_POLL_INTERVAL))
    try:
        interval = float(raw)
    except ValueError:
        logger.warning(
            f"Invalid DM_POLL_INTERVAL={raw}, using default {DEFAULT_POLL_INTERVAL}"
        )
        return DEFAULT_POLL_INTERVAL

    if interval <= 0:
        logger.warning(
            f"Invalid DM_POLL_INTERVAL={interval}, using default {DEFAULT_POLL_INTERVAL}"
        )
        return DEFAULT_POLL_INTERVAL
    return interval


def get_server_url() -> str:
    """Get the dm-server URL from environment or use default."""
    return os.environ.get("DM_SERVER_URL", "http://localhost:8000")


def get_log_level() -> str:
    """Get the log level name from environment, defaulting to INFO."""
    level = os.environ.get("DM_LOG_LEVEL", "INFO").upper()
    return level if level in LOG_LEVELS else "INFO"
