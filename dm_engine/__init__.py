"""
DM Engine module.

This module contains the process-invocation primitive and the engine probe:
stateless queries and by-name operations against the Docker engine, all
expressed as docker CLI invocations.
"""

from .classify import check_result
from .probe import (
    container_exists,
    container_exists_async,
    container_paused,
    container_paused_async,
    container_running,
    container_running_async,
    engine_reachable,
    engine_reachable_async,
    kill_container,
    kill_container_async,
    remove_container,
    remove_container_async,
    stop_container,
    stop_container_async,
)
from .runner import CommandRunner

__all__ = [
    "CommandRunner",
    "check_result",
    "container_exists",
    "container_exists_async",
    "container_paused",
    "container_paused_async",
    "container_running",
    "container_running_async",
    "engine_reachable",
    "engine_reachable_async",
    "kill_container",
    "kill_container_async",
    "remove_container",
    "remove_container_async",
    "stop_container",
    "stop_container_async",
]
