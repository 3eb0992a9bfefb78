"""
HTTP client for the docker-manager server.

Mirrors the DockerContainer operations over the dm_server API. Failed
requests raise RuntimeError carrying the server's error detail.
"""

from typing import Any

import requests

from dm_common.settings import get_server_url


class DockerManagerClient:
    """Thin requests-based client for dm_server."""

    def __init__(self, server_url: str | None = None, timeout: float = 300):
        """
        Initialize the client.

        Args:
            server_url: Base URL of the server (default: DM_SERVER_URL env)
            timeout: Request timeout in seconds; run and exec may block for long
        """
        self.server_url = (server_url or get_server_url()).rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = requests.request(
                method, f"{self.server_url}{path}", timeout=self.timeout, **kwargs
            )
        except requests.exceptions.RequestException as e:
            raise RuntimeError(f"Error contacting docker-manager server: {e}") from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise RuntimeError(f"Server returned {response.status_code}: {detail}")

        return response.json()

    def health(self) -> dict[str, Any]:
        return self._request("GET", "/health")

    def engine_reachable(self) -> bool:
        return bool(self.health().get("engine_reachable"))

    def status(self, name: str) -> dict[str, Any]:
        """Get the live state of a container (state, exists, running, ready, paused)."""
        return self._request("GET", f"/containers/{name}")

    def start(
        self,
        name: str,
        image: str,
        environment: dict[str, str] | None = None,
        interactive: bool = False,
        ignore_container_errors: bool = False,
        docker_in_docker: bool = False,
    ) -> None:
        self._request(
            "POST",
            f"/containers/{name}/start",
            json={
                "image": image,
                "environment": environment or {},
                "interactive": interactive,
                "ignore_container_errors": ignore_container_errors,
                "docker_in_docker": docker_in_docker,
            },
        )

    def run(
        self,
        name: str,
        image: str,
        command: str,
        environment: dict[str, str] | None = None,
        ignore_container_errors: bool = False,
    ) -> str:
        """Run a command in an auto-removing container, returning its output."""
        result = self._request(
            "POST",
            f"/containers/{name}/run",
            json={
                "image": image,
                "command": command,
                "environment": environment or {},
                "ignore_container_errors": ignore_container_errors,
            },
        )
        return result["output"]

    def stop(self, name: str, grace_seconds: int = 0) -> None:
        self._request(
            "POST", f"/containers/{name}/stop", json={"grace_seconds": grace_seconds}
        )

    def kill(self, name: str) -> None:
        self._request("POST", f"/containers/{name}/kill")

    def remove(self, name: str, force: bool = False) -> None:
        params = {"force": "true"} if force else {}
        self._request("DELETE", f"/containers/{name}", params=params)

    def execute(
        self, name: str, command: str, ignore_container_errors: bool = False
    ) -> str:
        result = self._request(
            "POST",
            f"/containers/{name}/exec",
            json={
                "command": command,
                "ignore_container_errors": ignore_container_errors,
            },
        )
        return result["output"]

    def get_logs(self, name: str) -> str:
        return self._request("GET", f"/containers/{name}/logs")["logs"]

    def wait(self, name: str, condition: str, max_wait_seconds: float = 10) -> bool:
        """
        Wait server-side for a condition (exists, running, ready, removed,
        stopped, unready).

        Returns:
            True if the condition was met before the timeout
        """
        result = self._request(
            "POST",
            f"/containers/{name}/wait",
            json={"condition": condition, "max_wait_seconds": max_wait_seconds},
        )
        return bool(result["satisfied"])
