"""
Error hierarchy for docker-manager.

Every failure raised by the engine probe or the container controller is a
subclass of DockerManagerError. The subclasses also inherit from the builtin
exception a caller would naturally catch (ValueError for bad configuration,
RuntimeError for state and engine problems).

None of these errors are retried internally; retry policy belongs to the caller.
"""

from collections.abc import Sequence


class DockerManagerError(Exception):
    """Base class for all docker-manager errors."""

    kind = "docker_manager_error"


class InvalidConfigurationError(DockerManagerError, ValueError):
    """Bad container name, image or environment variable key."""

    kind = "invalid_configuration"


class DuplicateKeyError(InvalidConfigurationError):
    """Environment variable was added twice."""

    kind = "duplicate_key"


class UnknownKeyError(InvalidConfigurationError):
    """Environment variable was set before being added."""

    kind = "unknown_key"


class InvalidStateError(DockerManagerError, RuntimeError):
    """Operation attempted against a container in the wrong lifecycle state."""

    kind = "invalid_state"


class AlreadyExistsError(InvalidStateError):
    """A container with the same name already exists in the engine."""

    kind = "already_exists"


class EngineUnavailableError(DockerManagerError, RuntimeError):
    """The Docker daemon cannot be reached."""

    kind = "engine_unavailable"

    def __init__(self, message: str = "Docker engine is not reachable"):
        super().__init__(message)


class EngineOperationFailedError(DockerManagerError, RuntimeError):
    """
    The engine accepted the request but the invocation reported an error.

    Attributes:
        command: Argument list that was invoked
        stdout: Captured standard output lines
        stderr: Captured standard error lines
        returncode: Exit status, or None if the process never started
    """

    kind = "engine_operation_failed"

    def __init__(
        self,
        message: str,
        command: Sequence[str] = (),
        stdout: Sequence[str] = (),
        stderr: Sequence[str] = (),
        returncode: int | None = None,
    ):
        super().__init__(message)
        self.command = list(command)
        self.stdout = list(stdout)
        self.stderr = list(stderr)
        self.returncode = returncode
