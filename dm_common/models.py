"""
Data models for docker-manager.

These models describe invocation results, per-container configuration and
the observed lifecycle state, independent of how the engine is reached.
"""

from dataclasses import dataclass, field
from enum import Enum

from .errors import InvalidConfigurationError
from .settings import get_docker_binary, get_poll_interval


class ContainerState(str, Enum):
    """
    Observed lifecycle state of a named container.

    Always recomputed from the engine; never stored on a controller.
    """

    UNMATERIALIZED = "unmaterialized"  # No engine object with this name
    EXISTS = "exists"  # Created, exited or paused
    RUNNING = "running"  # Exists and State.Running is true


@dataclass
class CommandResult:
    """
    Captured outcome of a single CLI invocation.

    A returncode of None means the process could not be launched at all
    (for example the docker executable is missing).
    """

    args: list[str]
    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)
    returncode: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0

    @property
    def launched(self) -> bool:
        return self.returncode is not None

    @property
    def stdout_text(self) -> str:
        return "\n".join(self.stdout)

    @property
    def stderr_text(self) -> str:
        return "\n".join(self.stderr)

    @property
    def last_line(self) -> str | None:
        """Last line of standard output, or None if there was no output."""
        return self.stdout[-1] if self.stdout else None


@dataclass
class ContainerConfig:
    """
    Per-instance configuration for a DockerContainer.

    Attributes:
        ignore_container_errors: Suppress stderr-based failures for operations
            that tolerate noisy stderr (execute, logs, stop, kill, start, run).
            Non-zero exit codes and state preconditions are never suppressed.
        docker_in_docker: Give the container access to the host engine.
        debug: Log wait-loop outcomes at INFO instead of DEBUG.
        poll_interval: Seconds between samples in the wait primitives.
        docker_binary: Executable used to reach the engine.
    """

    ignore_container_errors: bool = False
    docker_in_docker: bool = False
    debug: bool = False
    poll_interval: float = field(default_factory=get_poll_interval)
    docker_binary: str = field(default_factory=get_docker_binary)

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise InvalidConfigurationError(
                f"poll_interval must be positive, got {self.poll_interval}"
            )
