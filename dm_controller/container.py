"""
Docker container controller.

This module provides DockerContainer, a durable handle on one named
container. The handle owns the image reference and the environment set used
to materialize the container, issues lifecycle commands through the docker
CLI and exposes predicates and bounded wait primitives over the container's
live state.

No state is cached: every predicate re-queries the engine, and every
operation first checks that the engine is reachable.
"""

import logging
import os
import sys

from dm_common.errors import (
    AlreadyExistsError,
    DuplicateKeyError,
    InvalidConfigurationError,
    InvalidStateError,
    UnknownKeyError,
)
from dm_common.models import CommandResult, ContainerConfig, ContainerState
from dm_engine import commands, probe
from dm_engine.classify import check_result
from dm_engine.runner import CommandRunner

from .polling import wait_until, wait_until_async

DOCKER_SOCKET = "/var/run/docker.sock"
DEFAULT_DOCKER_HOST = "tcp://host.docker.internal:2375"


def validate_container_name(name: str) -> None:
    """
    Check that a container name is usable as a docker CLI argument.

    The name must be non-empty, lowercase, free of whitespace and must not
    start with "-", which docker would parse as a flag.

    Raises:
        InvalidConfigurationError: If the name is invalid
    """
    if not name:
        raise InvalidConfigurationError("Container name must not be empty")

    if name != name.lower():
        raise InvalidConfigurationError(f"Container name must be lowercase: {name!r}")

    if any(c.isspace() for c in name):
        raise InvalidConfigurationError(
            f"Container name must not contain whitespace: {name!r}"
        )

    if name.startswith("-"):
        raise InvalidConfigurationError(
            f"Container name must not start with '-': {name!r}"
        )


class DockerContainer:
    """
    Controls a single named Docker container through the docker CLI.

    The environment set may only be changed while no container with this
    name exists. After remove() the same handle can materialize a new
    container under the same name.

    Sync methods block the caller for the duration of the invocation. The
    *_async coroutines do the same work without blocking the event loop;
    wrap them in asyncio.create_task() to dispatch them concurrently. Errors
    from a dispatched task surface only when it is awaited.

    The controller performs no locking. Callers racing operations on the
    same name must serialize them externally.
    """

    def __init__(
        self,
        name: str,
        image: str,
        environment: dict[str, str] | None = None,
        config: ContainerConfig | None = None,
        runner: CommandRunner | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize a container handle.

        Args:
            name: Container name (lowercase, no whitespace)
            image: Image reference including tag, used by start() and run()
            environment: Initial environment variables (copied)
            config: Per-instance configuration
            runner: Process invocation primitive
            logger: Logger for lifecycle and wait-loop messages

        Raises:
            InvalidConfigurationError: If the name is invalid
        """
        validate_container_name(name)

        self._name = name
        self._image = image
        self._environment: dict[str, str] = dict(environment or {})
        self.config = config or ContainerConfig()
        self.runner = runner or CommandRunner()
        self.logger = logger or logging.getLogger(__name__)

    def __repr__(self) -> str:
        return f"DockerContainer(name={self._name!r}, image={self._image!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def image(self) -> str:
        return self._image

    @property
    def environment_variables(self) -> dict[str, str]:
        """Copy of the environment set passed to the container on start."""
        return dict(self._environment)

    @property
    def docker(self) -> str:
        return self.config.docker_binary

    # ========================================================================
    # Configuration
    # ========================================================================

    def add_environment_variable(self, key: str, value: str) -> None:
        """
        Add an environment variable before the container is materialized.

        Raises:
            InvalidStateError: If the container already exists
            DuplicateKeyError: If the variable is already defined
        """
        if self.exists():
            raise InvalidStateError(
                "Cannot add environment variables to an existing container"
            )

        if key in self._environment:
            raise DuplicateKeyError(f"Environment variable already exists: {key}")

        self._environment[key] = value

    def set_environment_variable(self, key: str, value: str) -> None:
        """
        Overwrite an existing environment variable before materialization.

        Raises:
            InvalidStateError: If the container already exists
            UnknownKeyError: If the variable was never added
        """
        if self.exists():
            raise InvalidStateError(
                "Cannot set environment variables on an existing container"
            )

        if key not in self._environment:
            raise UnknownKeyError(f"Environment variable doesn't exist: {key}")

        self._environment[key] = value

    # ========================================================================
    # State predicates
    # ========================================================================

    def exists(self) -> bool:
        """True if an engine object with this name exists, in any state."""
        return probe.container_exists(self._name, self.runner, self.docker)

    def running(self) -> bool:
        return probe.container_running(self._name, self.runner, self.docker)

    def ready(self) -> bool:
        """True if the container exists and is running."""
        return self.exists() and self.running()

    def paused(self) -> bool:
        return probe.container_paused(self._name, self.runner, self.docker)

    def state(self) -> ContainerState:
        if not self.exists():
            return ContainerState.UNMATERIALIZED
        if self.running():
            return ContainerState.RUNNING
        return ContainerState.EXISTS

    async def exists_async(self) -> bool:
        return await probe.container_exists_async(self._name, self.runner, self.docker)

    async def running_async(self) -> bool:
        return await probe.container_running_async(
            self._name, self.runner, self.docker
        )

    async def ready_async(self) -> bool:
        return await self.exists_async() and await self.running_async()

    async def paused_async(self) -> bool:
        return await probe.container_paused_async(
            self._name, self.runner, self.docker
        )

    async def state_async(self) -> ContainerState:
        if not await self.exists_async():
            return ContainerState.UNMATERIALIZED
        if await self.running_async():
            return ContainerState.RUNNING
        return ContainerState.EXISTS

    # ========================================================================
    # Command assembly
    # ========================================================================

    def _docker_in_docker(self) -> tuple[list[str], dict[str, str]]:
        """
        Extra flags and variables that give the container access to the host engine.

        On Linux with a local socket the socket is mounted and the docker group
        added. Elsewhere DOCKER_HOST points at the host's TCP endpoint unless
        the caller already set it.
        """
        if not self.config.docker_in_docker:
            return [], {}

        if sys.platform.startswith("linux") and os.path.exists(DOCKER_SOCKET):
            import grp

            try:
                gid = grp.getgrnam("docker").gr_gid
            except KeyError:
                gid = None

            if gid is not None:
                return [
                    "--privileged",
                    "--group-add",
                    str(gid),
                    "-v",
                    f"{DOCKER_SOCKET}:{DOCKER_SOCKET}",
                ], {}

        if "DOCKER_HOST" in self._environment:
            return [], {}
        return [], {"DOCKER_HOST": DEFAULT_DOCKER_HOST}

    def _run_args(
        self,
        detached: bool,
        interactive: bool = False,
        remove: bool = False,
        command: str | None = None,
    ) -> list[str]:
        if not self._image:
            raise InvalidConfigurationError(
                f"Container {self._name} has no image, cannot materialize it"
            )

        extra, extra_env = self._docker_in_docker()
        return commands.run_args(
            self.docker,
            self._name,
            self._image,
            detached=detached,
            interactive=interactive,
            remove=remove,
            extra=extra,
            environment={**self._environment, **extra_env},
            command=command,
        )

    def _check(self, result: CommandResult, action: str) -> CommandResult:
        return check_result(
            result,
            f"{action} container {self._name}",
            ignore_stderr=self.config.ignore_container_errors,
        )

    # ========================================================================
    # Preconditions
    # ========================================================================

    def _require_engine(self) -> None:
        probe.require_engine(self.runner, self.docker)

    async def _require_engine_async(self) -> None:
        await probe.require_engine_async(self.runner, self.docker)

    def _already_exists_error(self) -> AlreadyExistsError:
        return AlreadyExistsError(
            f"Container {self._name} already exists, "
            "rename the container or remove the old one"
        )

    # ========================================================================
    # Lifecycle operations
    # ========================================================================

    def start(self, interactive: bool = False) -> None:
        """
        Start the container detached.

        When the image is not present locally docker pulls it and prints
        "Unable to find image ... locally" to stderr. Unless
        ignore_container_errors is set, that raises EngineOperationFailedError
        even though the container was created and may be running. Check
        exists() after a failure before retrying.

        Args:
            interactive: Also pass -it, keeping images without a long-running
                entrypoint alive

        Raises:
            EngineUnavailableError: If the engine is not reachable
            AlreadyExistsError: If a container with this name exists
            EngineOperationFailedError: If docker reported an error (e.g. bad image)
        """
        self._require_engine()
        if self.exists():
            raise self._already_exists_error()

        result = self.runner.run(self._run_args(detached=True, interactive=interactive))
        self._check(result, "starting")
        self.logger.info(f"Started container {self._name} from {self._image}")

    async def start_async(self, interactive: bool = False) -> None:
        """Async variant of start()."""
        await self._require_engine_async()
        if await self.exists_async():
            raise self._already_exists_error()

        result = await self.runner.run_async(
            self._run_args(detached=True, interactive=interactive)
        )
        self._check(result, "starting")
        self.logger.info(f"Started container {self._name} from {self._image}")

    def run(self, command: str) -> str:
        """
        Run a command in a new auto-removing container and wait for it to exit.

        Args:
            command: Command line executed in the container

        Returns:
            Captured standard output

        Raises:
            EngineUnavailableError: If the engine is not reachable
            AlreadyExistsError: If a container with this name exists
            EngineOperationFailedError: If docker or the command reported an error
        """
        self._require_engine()
        if self.exists():
            raise self._already_exists_error()

        self.logger.info(f"Running '{command}' in container {self._name}")
        result = self.runner.run(
            self._run_args(detached=False, remove=True, command=command)
        )
        self._check(result, "running")
        return result.stdout_text

    async def run_async(self, command: str) -> str:
        """Async variant of run()."""
        await self._require_engine_async()
        if await self.exists_async():
            raise self._already_exists_error()

        self.logger.info(f"Running '{command}' in container {self._name}")
        result = await self.runner.run_async(
            self._run_args(detached=False, remove=True, command=command)
        )
        self._check(result, "running")
        return result.stdout_text

    def stop(self, grace_seconds: int = 0) -> None:
        """
        Stop the running container.

        Args:
            grace_seconds: Seconds before the engine kills it (0 = engine default)

        Raises:
            EngineUnavailableError: If the engine is not reachable
            InvalidStateError: If the container doesn't exist or isn't running
            EngineOperationFailedError: If docker reported an error
        """
        probe.stop_container(
            self._name,
            grace_seconds,
            self.runner,
            self.docker,
            ignore_stderr=self.config.ignore_container_errors,
        )

    async def stop_async(self, grace_seconds: int = 0) -> None:
        """Async variant of stop()."""
        await probe.stop_container_async(
            self._name,
            grace_seconds,
            self.runner,
            self.docker,
            ignore_stderr=self.config.ignore_container_errors,
        )

    def kill(self) -> None:
        """
        Kill the running container immediately.

        Raises:
            EngineUnavailableError: If the engine is not reachable
            InvalidStateError: If the container isn't running
            EngineOperationFailedError: If docker reported an error
        """
        probe.kill_container(
            self._name,
            self.runner,
            self.docker,
            ignore_stderr=self.config.ignore_container_errors,
        )

    async def kill_async(self) -> None:
        """Async variant of kill()."""
        await probe.kill_container_async(
            self._name,
            self.runner,
            self.docker,
            ignore_stderr=self.config.ignore_container_errors,
        )

    def remove(self, force: bool = False) -> None:
        """
        Remove the container.

        Stderr from `docker rm` fails the call even with ignore_container_errors.

        Args:
            force: Required when the container is running

        Raises:
            EngineUnavailableError: If the engine is not reachable
            InvalidStateError: If the container is absent, or running without force
            EngineOperationFailedError: If docker reported an error
        """
        probe.remove_container(self._name, force, self.runner, self.docker)

    async def remove_async(self, force: bool = False) -> None:
        """Async variant of remove()."""
        await probe.remove_container_async(self._name, force, self.runner, self.docker)

    def execute(self, command: str) -> str:
        """
        Execute a command inside the running container and wait for it.

        Returns:
            Captured standard output of the command

        Raises:
            EngineUnavailableError: If the engine is not reachable
            InvalidStateError: If the container isn't running
            EngineOperationFailedError: If the command failed or wrote to stderr
        """
        self._require_engine()
        if not self.running():
            raise InvalidStateError(
                f"Container {self._name} is not running, cannot execute '{command}'"
            )

        result = self.runner.run(commands.exec_args(self.docker, self._name, command))
        self._check(result, f"executing '{command}' in")
        return result.stdout_text

    async def execute_async(self, command: str) -> str:
        """Async variant of execute()."""
        await self._require_engine_async()
        if not await self.running_async():
            raise InvalidStateError(
                f"Container {self._name} is not running, cannot execute '{command}'"
            )

        result = await self.runner.run_async(
            commands.exec_args(self.docker, self._name, command)
        )
        self._check(result, f"executing '{command}' in")
        return result.stdout_text

    def get_logs(self) -> str:
        """
        Get the container's standard output logs as a single string.

        Raises:
            EngineUnavailableError: If the engine is not reachable
            InvalidStateError: If the container doesn't exist
            EngineOperationFailedError: If docker reported an error
        """
        self._require_engine()
        if not self.exists():
            raise InvalidStateError(
                f"Container {self._name} doesn't exist, cannot get its logs"
            )

        result = self.runner.run(commands.logs_args(self.docker, self._name))
        self._check(result, "getting logs of")
        return result.stdout_text

    async def get_logs_async(self) -> str:
        """Async variant of get_logs()."""
        await self._require_engine_async()
        if not await self.exists_async():
            raise InvalidStateError(
                f"Container {self._name} doesn't exist, cannot get its logs"
            )

        result = await self.runner.run_async(
            commands.logs_args(self.docker, self._name)
        )
        self._check(result, "getting logs of")
        return result.stdout_text

    # ========================================================================
    # Wait primitives
    # ========================================================================

    def _wait(
        self, condition, expected: bool, label: str, max_wait_seconds: float
    ) -> bool:
        return wait_until(
            condition,
            expected,
            f"{self._name} {label}",
            max_wait_seconds,
            self.config.poll_interval,
            self.logger,
            logging.INFO if self.config.debug else logging.DEBUG,
        )

    async def _wait_async(
        self, condition, expected: bool, label: str, max_wait_seconds: float
    ) -> bool:
        return await wait_until_async(
            condition,
            expected,
            f"{self._name} {label}",
            max_wait_seconds,
            self.config.poll_interval,
            self.logger,
            logging.INFO if self.config.debug else logging.DEBUG,
        )

    def wait_until_exists(self, max_wait_seconds: float = 10) -> bool:
        return self._wait(self.exists, True, "exists", max_wait_seconds)

    def wait_until_running(self, max_wait_seconds: float = 10) -> bool:
        return self._wait(self.running, True, "running", max_wait_seconds)

    def wait_until_ready(self, max_wait_seconds: float = 10) -> bool:
        return self._wait(self.ready, True, "ready", max_wait_seconds)

    def wait_until_removed(self, max_wait_seconds: float = 10) -> bool:
        return self._wait(self.exists, False, "exists", max_wait_seconds)

    def wait_until_stopped(self, max_wait_seconds: float = 10) -> bool:
        return self._wait(self.running, False, "running", max_wait_seconds)

    def wait_until_unready(self, max_wait_seconds: float = 10) -> bool:
        return self._wait(self.ready, False, "ready", max_wait_seconds)

    async def wait_until_exists_async(self, max_wait_seconds: float = 10) -> bool:
        return await self._wait_async(
            self.exists_async, True, "exists", max_wait_seconds
        )

    async def wait_until_running_async(self, max_wait_seconds: float = 10) -> bool:
        return await self._wait_async(
            self.running_async, True, "running", max_wait_seconds
        )

    async def wait_until_ready_async(self, max_wait_seconds: float = 10) -> bool:
        return await self._wait_async(self.ready_async, True, "ready", max_wait_seconds)

    async def wait_until_removed_async(self, max_wait_seconds: float = 10) -> bool:
        return await self._wait_async(
            self.exists_async, False, "exists", max_wait_seconds
        )

    async def wait_until_stopped_async(self, max_wait_seconds: float = 10) -> bool:
        return await self._wait_async(
            self.running_async, False, "running", max_wait_seconds
        )

    async def wait_until_unready_async(self, max_wait_seconds: float = 10) -> bool:
        return await self._wait_async(
            self.ready_async, False, "ready", max_wait_seconds
        )
