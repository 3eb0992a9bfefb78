"""
Command-line tool for controlling Docker containers through the docker CLI.

Provides commands for the container lifecycle (start, run, stop, kill, rm),
inspection (status, logs, exec) and waiting for state transitions.
"""

import json
import logging
import sys
from collections.abc import Callable
from typing import Any

import click

from dm_common.errors import DockerManagerError
from dm_common.models import ContainerConfig, ContainerState
from dm_common.settings import (
    LOG_FORMAT,
    LOG_LEVELS,
    get_docker_binary,
    get_log_level,
)
from dm_controller.container import DockerContainer
from dm_engine.probe import engine_reachable

WAIT_CONDITIONS = ["exists", "running", "ready", "removed", "stopped", "unready"]


def parse_env(values: tuple[str, ...]) -> dict[str, str]:
    """Parse KEY=VALUE pairs given with -e."""
    environment = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got {item!r}")
        if key in environment:
            raise click.BadParameter(f"Environment variable given twice: {key}")
        environment[key] = value
    return environment


def run_operation(operation: Callable[[], Any]) -> Any:
    """Run a controller operation, turning docker-manager errors into exit 1."""
    try:
        return operation()
    except DockerManagerError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def make_container(
    ctx: click.Context,
    name: str,
    image: str = "",
    environment: dict[str, str] | None = None,
    docker_in_docker: bool = False,
) -> DockerContainer:
    config = ContainerConfig(
        ignore_container_errors=ctx.obj["ignore_errors"],
        docker_in_docker=docker_in_docker,
        debug=ctx.obj["debug"],
        docker_binary=ctx.obj["docker"],
    )
    return run_operation(
        lambda: DockerContainer(name, image, environment=environment, config=config)
    )


@click.group()
@click.option(
    "--docker",
    default=None,
    help="Docker executable (default: DM_DOCKER_BINARY env or docker)",
)
@click.option(
    "--ignore-errors",
    is_flag=True,
    help="Do not fail on stderr output from start, run, stop, kill, exec and logs",
)
@click.option("--debug", is_flag=True, help="Report wait-loop outcomes")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS),
    default=None,
    help="Logging level (default: DM_LOG_LEVEL env or INFO)",
)
@click.pass_context
def cli(
    ctx: click.Context,
    docker: str | None,
    ignore_errors: bool,
    debug: bool,
    log_level: str | None,
):
    """dm - Control Docker containers through the docker CLI."""
    logging.basicConfig(
        level=getattr(logging, log_level or get_log_level()), format=LOG_FORMAT
    )
    ctx.ensure_object(dict)
    ctx.obj["docker"] = docker or get_docker_binary()
    ctx.obj["ignore_errors"] = ignore_errors
    ctx.obj["debug"] = debug


# ============================================================================
# Engine Commands
# ============================================================================


@cli.group()
def engine():
    """Query the Docker engine."""
    pass


@engine.command("status")
@click.pass_context
def engine_status(ctx: click.Context):
    """Check whether the Docker engine is reachable."""
    if engine_reachable(docker=ctx.obj["docker"]):
        click.echo("✓ Docker engine is reachable")
    else:
        click.echo("✗ Docker engine is not reachable", err=True)
        sys.exit(1)


# ============================================================================
# Lifecycle Commands
# ============================================================================


@cli.command("start")
@click.argument("name")
@click.argument("image")
@click.option(
    "-e", "--env", "env", multiple=True, help="Environment variable KEY=VALUE"
)
@click.option(
    "-i", "--interactive", is_flag=True, help="Allocate a TTY and keep stdin open"
)
@click.option(
    "--docker-in-docker",
    is_flag=True,
    help="Give the container access to the host engine",
)
@click.option(
    "--wait",
    "wait_seconds",
    type=float,
    default=None,
    help="Wait up to N seconds for the container to be ready",
)
@click.pass_context
def start(
    ctx: click.Context,
    name: str,
    image: str,
    env: tuple[str, ...],
    interactive: bool,
    docker_in_docker: bool,
    wait_seconds: float | None,
):
    """Start container NAME from IMAGE in detached mode."""
    container = make_container(ctx, name, image, parse_env(env), docker_in_docker)
    run_operation(lambda: container.start(interactive=interactive))
    click.echo(f"✓ Container started: {name}")

    if wait_seconds is not None:
        if run_operation(lambda: container.wait_until_ready(wait_seconds)):
            click.echo(f"✓ Container ready: {name}")
        else:
            click.echo(f"Container not ready after {wait_seconds}s: {name}", err=True)
            sys.exit(1)


@cli.command("run")
@click.argument("name")
@click.argument("image")
@click.argument("command")
@click.option(
    "-e", "--env", "env", multiple=True, help="Environment variable KEY=VALUE"
)
@click.pass_context
def run(
    ctx: click.Context, name: str, image: str, command: str, env: tuple[str, ...]
):
    """Run COMMAND in an auto-removing container NAME and print its output."""
    container = make_container(ctx, name, image, parse_env(env))
    output = run_operation(lambda: container.run(command))
    if output:
        click.echo(output)


@cli.command("stop")
@click.argument("name")
@click.option(
    "-t",
    "--time",
    "grace_seconds",
    type=int,
    default=0,
    help="Seconds before the engine kills the container",
)
@click.pass_context
def stop(ctx: click.Context, name: str, grace_seconds: int):
    """Stop running container NAME."""
    container = make_container(ctx, name)
    run_operation(lambda: container.stop(grace_seconds))
    click.echo(f"✓ Container stopped: {name}")


@cli.command("kill")
@click.argument("name")
@click.pass_context
def kill(ctx: click.Context, name: str):
    """Kill running container NAME immediately."""
    container = make_container(ctx, name)
    run_operation(container.kill)
    click.echo(f"✓ Container killed: {name}")


@cli.command("rm")
@click.argument("name")
@click.option("-f", "--force", is_flag=True, help="Remove even if running")
@click.pass_context
def rm(ctx: click.Context, name: str, force: bool):
    """Remove container NAME."""
    container = make_container(ctx, name)
    run_operation(lambda: container.remove(force=force))
    click.echo(f"✓ Container removed: {name}")


# ============================================================================
# Inspection Commands
# ============================================================================


@cli.command("exec")
@click.argument("name")
@click.argument("command")
@click.pass_context
def exec_command(ctx: click.Context, name: str, command: str):
    """Execute COMMAND inside running container NAME."""
    container = make_container(ctx, name)
    output = run_operation(lambda: container.execute(command))
    if output:
        click.echo(output)


@cli.command("logs")
@click.argument("name")
@click.pass_context
def logs(ctx: click.Context, name: str):
    """Print the logs of container NAME."""
    container = make_container(ctx, name)
    click.echo(run_operation(container.get_logs))


@cli.command("status")
@click.argument("name")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def status(ctx: click.Context, name: str, json_output: bool):
    """Show the live state of container NAME."""
    container = make_container(ctx, name)

    def collect() -> dict[str, Any]:
        state = container.state()
        exists = state != ContainerState.UNMATERIALIZED
        return {
            "name": name,
            "state": state.value,
            "exists": exists,
            "running": state == ContainerState.RUNNING,
            "paused": exists and container.paused(),
        }

    data = run_operation(collect)

    if json_output:
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"\nContainer: {name}")
    click.echo(f"  State:   {data['state']}")
    click.echo(f"  Exists:  {'yes' if data['exists'] else 'no'}")
    click.echo(f"  Running: {'yes' if data['running'] else 'no'}")
    click.echo(f"  Paused:  {'yes' if data['paused'] else 'no'}")
    click.echo()


@cli.command("wait")
@click.argument("name")
@click.argument("condition", type=click.Choice(WAIT_CONDITIONS))
@click.option(
    "--timeout", type=float, default=10, help="Maximum seconds to wait (default: 10)"
)
@click.pass_context
def wait(ctx: click.Context, name: str, condition: str, timeout: float):
    """Wait until container NAME reaches CONDITION."""
    container = make_container(ctx, name)
    waiter = getattr(container, f"wait_until_{condition}")
    if run_operation(lambda: waiter(timeout)):
        click.echo(f"✓ Container {name}: {condition}")
    else:
        click.echo(f"Timed out waiting for {name} to be {condition}", err=True)
        sys.exit(1)


# ============================================================================
# Server
# ============================================================================


@cli.command("serve")
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", type=int, default=8000, help="Port to listen on")
def serve(host: str, port: int):
    """Run the docker-manager HTTP API."""
    import uvicorn

    uvicorn.run("dm_server.app:app", host=host, port=port)


def main():
    """Entry point for the dm console script."""
    cli(obj={})


if __name__ == "__main__":
    main()
