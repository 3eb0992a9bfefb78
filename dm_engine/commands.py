"""
Argument lists for docker CLI invocations.

Each builder returns the full argv (executable first) for one engine
command. Flags are plain data here; no process is started.
"""

import shlex
from collections.abc import Mapping

from dm_common.errors import InvalidConfigurationError

RUNNING_FORMAT = "{{.State.Running}}"
PAUSED_FORMAT = "{{.State.Paused}}"


def split_command(command: str) -> list[str]:
    """
    Split a command line shell-style.

    Raises:
        InvalidConfigurationError: If the command has unbalanced quotes or a
            trailing escape
    """
    try:
        return shlex.split(command)
    except ValueError as e:
        raise InvalidConfigurationError(
            f"Cannot parse command {command!r}: {e}"
        ) from e


def info_args(docker: str) -> list[str]:
    return [docker, "info"]


def inspect_args(docker: str, name: str, fmt: str | None = None) -> list[str]:
    args = [docker, "inspect"]
    if fmt is not None:
        args.extend(["-f", fmt])
    args.append(name)
    return args


def environment_flags(environment: Mapping[str, str]) -> list[str]:
    """Serialize variables as repeated -e KEY=VALUE flags in mapping order."""
    flags = []
    for key, value in environment.items():
        flags.extend(["-e", f"{key}={value}"])
    return flags


def run_args(
    docker: str,
    name: str,
    image: str,
    *,
    detached: bool = False,
    interactive: bool = False,
    remove: bool = False,
    extra: list[str] | None = None,
    environment: Mapping[str, str] | None = None,
    command: str | None = None,
) -> list[str]:
    """
    Build a `docker run` invocation.

    Args:
        docker: Docker executable
        name: Container name
        image: Image reference including tag
        detached: Add -d
        interactive: Add -it
        remove: Add --rm so the container removes itself on exit
        extra: Additional flags placed before the environment flags
        environment: Variables passed with -e
        command: Command line to run in the container, split shell-style

    Returns:
        Argument list
    """
    args = [docker, "run", "--name", name]
    if remove:
        args.append("--rm")
    if interactive:
        args.append("-it")
    if detached:
        args.append("-d")
    if extra:
        args.extend(extra)
    if environment:
        args.extend(environment_flags(environment))
    args.append(image)
    if command:
        args.extend(split_command(command))
    return args


def stop_args(docker: str, name: str, grace_seconds: int = 0) -> list[str]:
    args = [docker, "stop"]
    if grace_seconds:
        args.extend(["--time", str(grace_seconds)])
    args.append(name)
    return args


def kill_args(docker: str, name: str) -> list[str]:
    return [docker, "kill", name]


def remove_args(docker: str, name: str, force: bool = False) -> list[str]:
    args = [docker, "rm"]
    if force:
        args.append("-f")
    args.append(name)
    return args


def exec_args(docker: str, name: str, command: str) -> list[str]:
    return [docker, "exec", name, *split_command(command)]


def logs_args(docker: str, name: str) -> list[str]:
    return [docker, "logs", name]
