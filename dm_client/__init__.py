"""
DM Client module.

HTTP client for a remote docker-manager server.
"""

from .client import DockerManagerClient

__all__ = ["DockerManagerClient"]
