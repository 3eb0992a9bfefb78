"""
End-to-end tests for DockerContainer against a real Docker engine.

These tests pull small public images (hello-world, ubuntu:22.04) and are
skipped when no engine is reachable.
"""

import asyncio
import uuid

import pytest

from dm_common.errors import EngineOperationFailedError, InvalidStateError
from dm_common.models import ContainerConfig
from dm_controller.container import DockerContainer
from dm_engine.probe import engine_reachable

pytestmark = pytest.mark.skipif(
    not engine_reachable(), reason="Docker engine is not reachable"
)


@pytest.fixture
def container_name():
    """Unique container name, force-removed after the test if still present."""
    name = f"dm-e2e-{uuid.uuid4().hex[:8]}"
    yield name

    leftover = DockerContainer(name, "")
    if leftover.exists():
        leftover.remove(force=True)


def test_hello_world_lifecycle(container_name):
    """Start hello-world, read its logs and remove it."""
    container = DockerContainer(container_name, "hello-world")
    assert not container.exists()

    container.start()
    assert container.wait_until_exists()
    assert "Hello from Docker!" in container.get_logs()

    assert container.wait_until_stopped()
    container.remove(force=True)
    assert container.wait_until_removed()
    assert not container.exists()


def test_bad_image_tag_fails_to_start(container_name):
    container = DockerContainer(container_name, "ubuntu:22.04__")

    with pytest.raises(EngineOperationFailedError):
        container.start()

    assert not container.exists()


def test_start_stop_remove(container_name):
    """A long-running container must be stopped or forced before removal."""
    container = DockerContainer(
        container_name,
        "ubuntu:22.04",
        config=ContainerConfig(ignore_container_errors=True),
    )

    container.start(interactive=True)
    assert container.wait_until_ready()

    with pytest.raises(InvalidStateError):
        container.remove()

    assert container.execute("echo inside") == "inside"

    container.stop(grace_seconds=1)
    assert container.wait_until_unready()
    container.remove()
    assert not container.exists()


@pytest.mark.asyncio
async def test_run_async_in_background(container_name):
    """Dispatch run_async as a task and observe the container come and go."""
    container = DockerContainer(
        container_name,
        "ubuntu:22.04",
        config=ContainerConfig(ignore_container_errors=True),
    )

    task = asyncio.create_task(container.run_async("sleep 3"))

    assert await container.wait_until_ready_async()
    assert await container.wait_until_unready_async()

    await task
    assert await container.wait_until_removed_async()
