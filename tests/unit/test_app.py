"""
Unit tests for the dm_server HTTP API.

Requests go through FastAPI's TestClient with the process runner replaced
by FakeEngine, so every endpoint exercises the real controller code.
"""

import pytest
from fastapi.testclient import TestClient

from dm_common.errors import (
    AlreadyExistsError,
    DockerManagerError,
    EngineOperationFailedError,
    EngineUnavailableError,
    UnknownKeyError,
)
from dm_server.app import app, get_runner, status_code_for


@pytest.fixture
def client(engine):
    """TestClient whose docker invocations go to the fake engine."""
    app.dependency_overrides[get_runner] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_status_codes_by_error_kind():
    assert status_code_for(UnknownKeyError("x")) == 400
    assert status_code_for(AlreadyExistsError("x")) == 409
    assert status_code_for(EngineUnavailableError()) == 503
    assert status_code_for(EngineOperationFailedError("x")) == 502
    assert status_code_for(DockerManagerError("x")) == 500


class TestHealth:
    """Test suite for the health endpoint."""

    def test_reports_reachable_engine(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "engine_reachable": True}

    def test_reports_unreachable_engine(self, client, engine):
        engine.reachable = False
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["engine_reachable"] is False


class TestContainerStatus:
    """Test suite for GET /containers/{name}."""

    def test_absent_container(self, client):
        response = client.get("/containers/web")
        assert response.status_code == 200
        assert response.json() == {
            "name": "web",
            "state": "unmaterialized",
            "exists": False,
            "running": False,
            "ready": False,
            "paused": False,
        }

    def test_running_container(self, client, engine):
        engine.add_container("web", running=True)
        data = client.get("/containers/web").json()
        assert data["state"] == "running"
        assert data["ready"] is True

    def test_stopped_container(self, client, engine):
        engine.add_container("web", running=False)
        data = client.get("/containers/web").json()
        assert data["state"] == "exists"
        assert data["exists"] is True
        assert data["running"] is False

    def test_engine_unavailable(self, client, engine):
        engine.reachable = False
        response = client.get("/containers/web")
        assert response.status_code == 503
        assert response.json()["error"] == "engine_unavailable"

    def test_invalid_name(self, client):
        response = client.get("/containers/Web")
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_configuration"


class TestLifecycle:
    """Test suite for the lifecycle endpoints."""

    def test_start_passes_environment(self, client, engine):
        response = client.post(
            "/containers/web/start",
            json={"image": "nginx:latest", "environment": {"PORT": "80"}},
        )
        assert response.status_code == 200
        assert response.json() == {"name": "web", "started": True}
        assert engine.containers["web"]["env"] == {"PORT": "80"}
        assert engine.containers["web"]["running"]

    def test_start_conflict(self, client, engine):
        engine.add_container("web")
        response = client.post("/containers/web/start", json={"image": "nginx:latest"})
        assert response.status_code == 409
        assert response.json()["error"] == "already_exists"

    def test_start_bad_image_reference(self, client, engine):
        response = client.post(
            "/containers/web/start", json={"image": "ubuntu:22.04__"}
        )
        assert response.status_code == 502
        assert "invalid reference format" in response.json()["detail"]
        assert "web" not in engine.containers

    def test_start_requires_image(self, client):
        response = client.post("/containers/web/start", json={})
        assert response.status_code == 422

    def test_run_returns_output(self, client, engine):
        response = client.post(
            "/containers/job/run",
            json={"image": "ubuntu:22.04", "command": "echo hello"},
        )
        assert response.status_code == 200
        assert response.json() == {"name": "job", "output": "hello"}
        assert "job" not in engine.containers

    def test_stop_without_body(self, client, engine):
        engine.add_container("web")
        response = client.post("/containers/web/stop")
        assert response.status_code == 200
        assert not engine.containers["web"]["running"]
        assert engine.calls_for("stop")[-1] == ["docker", "stop", "web"]

    def test_stop_with_grace_period(self, client, engine):
        engine.add_container("web")
        response = client.post("/containers/web/stop", json={"grace_seconds": 5})
        assert response.status_code == 200
        assert engine.calls_for("stop")[-1] == ["docker", "stop", "--time", "5", "web"]

    def test_stop_absent_container(self, client):
        response = client.post("/containers/web/stop")
        assert response.status_code == 409

    def test_kill(self, client, engine):
        engine.add_container("web")
        response = client.post("/containers/web/kill")
        assert response.status_code == 200
        assert response.json() == {"name": "web", "killed": True}
        assert not engine.containers["web"]["running"]

    def test_remove_running_requires_force(self, client, engine):
        engine.add_container("web")

        response = client.delete("/containers/web")
        assert response.status_code == 409
        assert "web" in engine.containers

        response = client.delete("/containers/web", params={"force": "true"})
        assert response.status_code == 200
        assert "web" not in engine.containers


class TestInspection:
    """Test suite for exec, logs and wait endpoints."""

    def test_exec_returns_output(self, client, engine):
        engine.add_container("web")
        response = client.post("/containers/web/exec", json={"command": "echo hi"})
        assert response.status_code == 200
        assert response.json()["output"] == "hi"

    def test_exec_unparseable_command(self, client, engine):
        engine.add_container("web")
        response = client.post("/containers/web/exec", json={"command": "echo it's"})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_configuration"
        assert "Cannot parse command" in response.json()["detail"]

    def test_exec_stderr_respects_ignore_flag(self, client, engine):
        engine.add_container("web")

        response = client.post("/containers/web/exec", json={"command": "warn"})
        assert response.status_code == 502
        assert response.json()["error"] == "engine_operation_failed"

        response = client.post(
            "/containers/web/exec",
            json={"command": "warn", "ignore_container_errors": True},
        )
        assert response.status_code == 200
        assert response.json()["output"] == "done"

    def test_logs(self, client, engine):
        engine.add_container("hello", image="hello-world", running=False)
        response = client.get("/containers/hello/logs")
        assert response.status_code == 200
        assert "Hello from Docker!" in response.json()["logs"]

    def test_wait_satisfied(self, client, engine):
        engine.add_container("web")
        response = client.post(
            "/containers/web/wait", json={"condition": "ready", "max_wait_seconds": 1}
        )
        assert response.status_code == 200
        assert response.json() == {
            "name": "web",
            "condition": "ready",
            "satisfied": True,
        }

    def test_wait_timeout_is_not_an_error(self, client):
        response = client.post(
            "/containers/web/wait",
            json={"condition": "exists", "max_wait_seconds": 0.2},
        )
        assert response.status_code == 200
        assert response.json()["satisfied"] is False

    def test_wait_rejects_unknown_condition(self, client):
        response = client.post("/containers/web/wait", json={"condition": "paused"})
        assert response.status_code == 422
