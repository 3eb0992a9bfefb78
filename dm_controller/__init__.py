"""
DM Controller module.

This module contains DockerContainer, the per-container controller that
drives a named container through its lifecycle (start, run, stop, kill,
remove, exec, logs) and lets callers wait for state transitions.

Every predicate re-queries the engine; no container state is cached.
"""

from .container import DockerContainer, validate_container_name

__all__ = ["DockerContainer", "validate_container_name"]
