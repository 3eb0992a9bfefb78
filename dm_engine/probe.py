"""
Engine probe: stateless queries against the Docker engine.

These functions answer "is the daemon reachable", "does a named container
exist" and "is a named container running/paused" by invoking the docker CLI
and reading its text output. Nothing is cached; every call re-queries.

The module also provides by-name stop/kill/remove operations for callers
that do not hold a DockerContainer handle.
"""

import logging

from dm_common.errors import EngineUnavailableError, InvalidStateError
from dm_common.settings import get_docker_binary

from . import commands
from .classify import check_result, is_cannot_connect
from .runner import CommandRunner

logger = logging.getLogger(__name__)


def _resolve(
    runner: CommandRunner | None, docker: str | None
) -> tuple[CommandRunner, str]:
    return runner or CommandRunner(), docker or get_docker_binary()


def engine_reachable(
    runner: CommandRunner | None = None, docker: str | None = None
) -> bool:
    """
    Check if the Docker daemon is reachable.

    Runs `docker info` and looks for the CLI's "cannot connect" diagnostics.
    Never raises.

    Returns:
        True if the engine answered, False otherwise
    """
    runner, docker = _resolve(runner, docker)
    result = runner.run(commands.info_args(docker))
    reachable = not is_cannot_connect(result)
    if not reachable:
        logger.debug(f"Docker engine unreachable: {result.stderr_text}")
    return reachable


async def engine_reachable_async(
    runner: CommandRunner | None = None, docker: str | None = None
) -> bool:
    """Async variant of engine_reachable()."""
    runner, docker = _resolve(runner, docker)
    result = await runner.run_async(commands.info_args(docker))
    return not is_cannot_connect(result)


def require_engine(
    runner: CommandRunner | None = None, docker: str | None = None
) -> None:
    """Raise EngineUnavailableError unless the engine is reachable."""
    if not engine_reachable(runner, docker):
        raise EngineUnavailableError("Docker engine is not running or not reachable")


async def require_engine_async(
    runner: CommandRunner | None = None, docker: str | None = None
) -> None:
    """Async variant of require_engine()."""
    if not await engine_reachable_async(runner, docker):
        raise EngineUnavailableError("Docker engine is not running or not reachable")


def container_exists(
    name: str, runner: CommandRunner | None = None, docker: str | None = None
) -> bool:
    """
    Check if a container with the given name exists (in any state).

    Raises:
        EngineUnavailableError: If the engine is not reachable
    """
    runner, docker = _resolve(runner, docker)
    require_engine(runner, docker)
    result = runner.run(commands.inspect_args(docker, name))
    return not result.stderr


async def container_exists_async(
    name: str, runner: CommandRunner | None = None, docker: str | None = None
) -> bool:
    """Async variant of container_exists()."""
    runner, docker = _resolve(runner, docker)
    await require_engine_async(runner, docker)
    result = await runner.run_async(commands.inspect_args(docker, name))
    return not result.stderr


def _flag_is_true(result) -> bool:
    # The last line is used so that preceding diagnostics are tolerated
    return result.last_line == "true"


def container_running(
    name: str, runner: CommandRunner | None = None, docker: str | None = None
) -> bool:
    """
    Check if a container's State.Running flag is true.

    Returns False for containers that do not exist.

    Raises:
        EngineUnavailableError: If the engine is not reachable
    """
    runner, docker = _resolve(runner, docker)
    require_engine(runner, docker)
    result = runner.run(commands.inspect_args(docker, name, commands.RUNNING_FORMAT))
    return _flag_is_true(result)


async def container_running_async(
    name: str, runner: CommandRunner | None = None, docker: str | None = None
) -> bool:
    """Async variant of container_running()."""
    runner, docker = _resolve(runner, docker)
    await require_engine_async(runner, docker)
    result = await runner.run_async(
        commands.inspect_args(docker, name, commands.RUNNING_FORMAT)
    )
    return _flag_is_true(result)


def container_paused(
    name: str, runner: CommandRunner | None = None, docker: str | None = None
) -> bool:
    """
    Check if a container's State.Paused flag is true.

    Raises:
        EngineUnavailableError: If the engine is not reachable
    """
    runner, docker = _resolve(runner, docker)
    require_engine(runner, docker)
    result = runner.run(commands.inspect_args(docker, name, commands.PAUSED_FORMAT))
    return _flag_is_true(result)


async def container_paused_async(
    name: str, runner: CommandRunner | None = None, docker: str | None = None
) -> bool:
    """Async variant of container_paused()."""
    runner, docker = _resolve(runner, docker)
    await require_engine_async(runner, docker)
    result = await runner.run_async(
        commands.inspect_args(docker, name, commands.PAUSED_FORMAT)
    )
    return _flag_is_true(result)


def _stop_precondition(name: str, exists: bool, running: bool) -> None:
    if not exists or not running:
        raise InvalidStateError(
            f"Container {name} doesn't exist or is not running, cannot stop it"
        )


def _kill_precondition(name: str, running: bool) -> None:
    if not running:
        raise InvalidStateError(f"Container {name} is not running, cannot kill it")


def _remove_precondition(name: str, exists: bool, running: bool, force: bool) -> None:
    if not exists:
        raise InvalidStateError(f"Container {name} doesn't exist, cannot remove it")
    if running and not force:
        raise InvalidStateError(
            f"Cannot remove running container {name}, set force to remove it"
        )


def stop_container(
    name: str,
    grace_seconds: int = 0,
    runner: CommandRunner | None = None,
    docker: str | None = None,
    ignore_stderr: bool = False,
) -> None:
    """
    Stop a running container by name.

    Args:
        name: Container name
        grace_seconds: Seconds to wait before the engine kills it (0 = engine default)
        ignore_stderr: Do not treat stderr output from `docker stop` as a failure

    Raises:
        EngineUnavailableError: If the engine is not reachable
        InvalidStateError: If the container does not exist or is not running
        EngineOperationFailedError: If the engine reported an error
    """
    runner, docker = _resolve(runner, docker)
    require_engine(runner, docker)
    exists = container_exists(name, runner, docker)
    running = exists and container_running(name, runner, docker)
    _stop_precondition(name, exists, running)

    result = runner.run(commands.stop_args(docker, name, grace_seconds))
    check_result(result, f"stopping container {name}", ignore_stderr)
    logger.info(f"Stopped container {name}")


async def stop_container_async(
    name: str,
    grace_seconds: int = 0,
    runner: CommandRunner | None = None,
    docker: str | None = None,
    ignore_stderr: bool = False,
) -> None:
    """Async variant of stop_container()."""
    runner, docker = _resolve(runner, docker)
    await require_engine_async(runner, docker)
    exists = await container_exists_async(name, runner, docker)
    running = exists and await container_running_async(name, runner, docker)
    _stop_precondition(name, exists, running)

    result = await runner.run_async(commands.stop_args(docker, name, grace_seconds))
    check_result(result, f"stopping container {name}", ignore_stderr)
    logger.info(f"Stopped container {name}")


def kill_container(
    name: str,
    runner: CommandRunner | None = None,
    docker: str | None = None,
    ignore_stderr: bool = False,
) -> None:
    """
    Kill a running container by name, without a grace period.

    Raises:
        EngineUnavailableError: If the engine is not reachable
        InvalidStateError: If the container is not running
        EngineOperationFailedError: If the engine reported an error
    """
    runner, docker = _resolve(runner, docker)
    require_engine(runner, docker)
    _kill_precondition(name, container_running(name, runner, docker))

    result = runner.run(commands.kill_args(docker, name))
    check_result(result, f"killing container {name}", ignore_stderr)
    logger.info(f"Killed container {name}")


async def kill_container_async(
    name: str,
    runner: CommandRunner | None = None,
    docker: str | None = None,
    ignore_stderr: bool = False,
) -> None:
    """Async variant of kill_container()."""
    runner, docker = _resolve(runner, docker)
    await require_engine_async(runner, docker)
    _kill_precondition(name, await container_running_async(name, runner, docker))

    result = await runner.run_async(commands.kill_args(docker, name))
    check_result(result, f"killing container {name}", ignore_stderr)
    logger.info(f"Killed container {name}")


def remove_container(
    name: str,
    force: bool = False,
    runner: CommandRunner | None = None,
    docker: str | None = None,
) -> None:
    """
    Remove a container by name.

    Stderr output from `docker rm` is always treated as a failure.

    Args:
        name: Container name
        force: Required to remove a running container

    Raises:
        EngineUnavailableError: If the engine is not reachable
        InvalidStateError: If the container is absent, or running without force
        EngineOperationFailedError: If the engine reported an error
    """
    runner, docker = _resolve(runner, docker)
    require_engine(runner, docker)
    exists = container_exists(name, runner, docker)
    running = exists and container_running(name, runner, docker)
    _remove_precondition(name, exists, running, force)

    result = runner.run(commands.remove_args(docker, name, force))
    check_result(result, f"removing container {name}")
    logger.info(f"Removed container {name}")


async def remove_container_async(
    name: str,
    force: bool = False,
    runner: CommandRunner | None = None,
    docker: str | None = None,
) -> None:
    """Async variant of remove_container()."""
    runner, docker = _resolve(runner, docker)
    await require_engine_async(runner, docker)
    exists = await container_exists_async(name, runner, docker)
    running = exists and await container_running_async(name, runner, docker)
    _remove_precondition(name, exists, running, force)

    result = await runner.run_async(commands.remove_args(docker, name, force))
    check_result(result, f"removing container {name}")
    logger.info(f"Removed container {name}")
