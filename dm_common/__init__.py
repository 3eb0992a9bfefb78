"""
DM Common module.

This module contains shared domain models, the error hierarchy and the
environment-based settings used across the docker-manager components
(engine, controller, server, client, cli).

The common module has no dependencies on other dm_* modules, making it
a pure domain layer that can be imported by any component.
"""

from .errors import (
    AlreadyExistsError,
    DockerManagerError,
    DuplicateKeyError,
    EngineOperationFailedError,
    EngineUnavailableError,
    InvalidConfigurationError,
    InvalidStateError,
    UnknownKeyError,
)
from .models import CommandResult, ContainerConfig, ContainerState

__all__ = [
    "AlreadyExistsError",
    "CommandResult",
    "ContainerConfig",
    "ContainerState",
    "DockerManagerError",
    "DuplicateKeyError",
    "EngineOperationFailedError",
    "EngineUnavailableError",
    "InvalidConfigurationError",
    "InvalidStateError",
    "UnknownKeyError",
]
