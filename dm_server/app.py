"""
HTTP API for controlling named Docker containers.

Each request builds a DockerContainer handle for the container named in the
path and runs the matching controller operation. The server keeps no
container state of its own; everything is read back from the engine.

Run with:
    uvicorn dm_server.app:app --port 8000
"""

import logging
from typing import Literal

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from dm_common.errors import (
    DockerManagerError,
    EngineOperationFailedError,
    EngineUnavailableError,
    InvalidConfigurationError,
    InvalidStateError,
)
from dm_common.models import ContainerConfig, ContainerState
from dm_common.settings import LOG_FORMAT, get_log_level
from dm_controller.container import DockerContainer
from dm_engine.probe import engine_reachable_async
from dm_engine.runner import CommandRunner

# Configure logging
logging.basicConfig(level=getattr(logging, get_log_level()), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

app = FastAPI(title="docker-manager")

WaitCondition = Literal["exists", "running", "ready", "removed", "stopped", "unready"]


class StartRequest(BaseModel):
    image: str
    environment: dict[str, str] = Field(default_factory=dict)
    interactive: bool = False
    ignore_container_errors: bool = False
    docker_in_docker: bool = False


class RunRequest(BaseModel):
    image: str
    command: str
    environment: dict[str, str] = Field(default_factory=dict)
    ignore_container_errors: bool = False


class StopRequest(BaseModel):
    grace_seconds: int = Field(default=0, ge=0)


class ExecRequest(BaseModel):
    command: str
    ignore_container_errors: bool = False


class WaitRequest(BaseModel):
    condition: WaitCondition
    max_wait_seconds: float = Field(default=10, ge=0, le=300)


def get_runner() -> CommandRunner:
    """
    Get the process runner used for docker invocations.

    Overridden in tests via app.dependency_overrides.
    """
    return CommandRunner()


def build_container(
    name: str,
    runner: CommandRunner,
    image: str = "",
    environment: dict[str, str] | None = None,
    ignore_container_errors: bool = False,
    docker_in_docker: bool = False,
) -> DockerContainer:
    config = ContainerConfig(
        ignore_container_errors=ignore_container_errors,
        docker_in_docker=docker_in_docker,
    )
    return DockerContainer(
        name, image, environment=environment, config=config, runner=runner
    )


def status_code_for(exc: DockerManagerError) -> int:
    """Map a docker-manager error to an HTTP status code."""
    if isinstance(exc, InvalidConfigurationError):
        return 400
    if isinstance(exc, InvalidStateError):
        return 409
    if isinstance(exc, EngineUnavailableError):
        return 503
    if isinstance(exc, EngineOperationFailedError):
        return 502
    return 500


@app.exception_handler(DockerManagerError)
async def docker_manager_error_handler(
    request: Request, exc: DockerManagerError
) -> JSONResponse:
    status_code = status_code_for(exc)
    logger.warning(
        f"{request.method} {request.url.path} failed with {status_code}: {exc}"
    )
    return JSONResponse(
        status_code=status_code, content={"detail": str(exc), "error": exc.kind}
    )


@app.get("/health")
async def health_check(runner: CommandRunner = Depends(get_runner)) -> dict:
    """Health check endpoint, also reporting whether the engine is reachable."""
    return {"status": "ok", "engine_reachable": await engine_reachable_async(runner)}


@app.get("/containers/{name}")
async def container_status(
    name: str, runner: CommandRunner = Depends(get_runner)
) -> dict:
    """
    Report the live state of a container.

    Returns:
        Dictionary with the derived state and each predicate
    """
    container = build_container(name, runner)
    state = await container.state_async()
    exists = state != ContainerState.UNMATERIALIZED
    running = state == ContainerState.RUNNING
    return {
        "name": name,
        "state": state.value,
        "exists": exists,
        "running": running,
        "ready": exists and running,
        "paused": exists and await container.paused_async(),
    }


@app.post("/containers/{name}/start")
async def start_container(
    name: str, body: StartRequest, runner: CommandRunner = Depends(get_runner)
) -> dict:
    container = build_container(
        name,
        runner,
        image=body.image,
        environment=body.environment,
        ignore_container_errors=body.ignore_container_errors,
        docker_in_docker=body.docker_in_docker,
    )
    await container.start_async(interactive=body.interactive)
    return {"name": name, "started": True}


@app.post("/containers/{name}/run")
async def run_container(
    name: str, body: RunRequest, runner: CommandRunner = Depends(get_runner)
) -> dict:
    """Run a command in an auto-removing container and return its output."""
    container = build_container(
        name,
        runner,
        image=body.image,
        environment=body.environment,
        ignore_container_errors=body.ignore_container_errors,
    )
    output = await container.run_async(body.command)
    return {"name": name, "output": output}


@app.post("/containers/{name}/stop")
async def stop_container(
    name: str,
    body: StopRequest | None = None,
    runner: CommandRunner = Depends(get_runner),
) -> dict:
    grace_seconds = body.grace_seconds if body else 0
    await build_container(name, runner).stop_async(grace_seconds)
    return {"name": name, "stopped": True}


@app.post("/containers/{name}/kill")
async def kill_container(
    name: str, runner: CommandRunner = Depends(get_runner)
) -> dict:
    await build_container(name, runner).kill_async()
    return {"name": name, "killed": True}


@app.delete("/containers/{name}")
async def remove_container(
    name: str, force: bool = False, runner: CommandRunner = Depends(get_runner)
) -> dict:
    await build_container(name, runner).remove_async(force=force)
    return {"name": name, "removed": True}


@app.post("/containers/{name}/exec")
async def exec_in_container(
    name: str, body: ExecRequest, runner: CommandRunner = Depends(get_runner)
) -> dict:
    container = build_container(
        name, runner, ignore_container_errors=body.ignore_container_errors
    )
    output = await container.execute_async(body.command)
    return {"name": name, "output": output}


@app.get("/containers/{name}/logs")
async def container_logs(
    name: str, runner: CommandRunner = Depends(get_runner)
) -> dict:
    logs = await build_container(name, runner).get_logs_async()
    return {"name": name, "logs": logs}


@app.post("/containers/{name}/wait")
async def wait_for_container(
    name: str, body: WaitRequest, runner: CommandRunner = Depends(get_runner)
) -> dict:
    """
    Wait for a container to reach a condition.

    Timing out is not an error: the response reports whether the
    condition was satisfied.
    """
    container = build_container(name, runner)
    wait = getattr(container, f"wait_until_{body.condition}_async")
    satisfied = await wait(body.max_wait_seconds)
    return {"name": name, "condition": body.condition, "satisfied": satisfied}
