"""
Shared test fixtures.

FakeEngine stands in for the docker CLI in unit tests: it records every
invocation and answers with the text a real docker client would print,
backed by an in-memory table of containers.
"""

import pytest

from dm_common.models import CommandResult
from dm_engine.runner import CommandRunner

CANNOT_CONNECT = (
    "Cannot connect to the Docker daemon at unix:///var/run/docker.sock. "
    "Is the docker daemon running?"
)


class FakeEngine(CommandRunner):
    """In-memory docker CLI used by unit tests."""

    def __init__(self):
        self.reachable = True
        self.containers: dict[str, dict] = {}
        self.calls: list[list[str]] = []
        # Extra stderr lines appended to successful invocations, by subcommand
        self.noise: dict[str, list[str]] = {}
        # Logs printed by containers started from an image
        self.image_logs = {"hello-world": ["Hello from Docker!"]}

    def add_container(self, name, image="ubuntu:22.04", running=True, paused=False):
        self.containers[name] = {
            "image": image,
            "running": running,
            "paused": paused,
            "env": {},
            "logs": list(self.image_logs.get(image, [])),
        }

    def subcommands(self) -> list[str]:
        return [call[1] for call in self.calls]

    def calls_for(self, subcommand: str) -> list[list[str]]:
        return [call for call in self.calls if call[1] == subcommand]

    def run(self, args):
        args = list(args)
        self.calls.append(args)
        sub = args[1]

        if sub == "info":
            if not self.reachable:
                return CommandResult(args, ["Client:"], [CANNOT_CONNECT], 1)
            return CommandResult(args, ["Client:", "Server:"], [], 0)

        if not self.reachable:
            return CommandResult(args, [], [CANNOT_CONNECT], 1)

        result = getattr(self, f"_{sub}")(args)
        if result.succeeded and sub in self.noise:
            result.stderr.extend(self.noise[sub])
        return result

    async def run_async(self, args):
        return self.run(args)

    def _missing(self, args, name):
        return CommandResult(args, [], [f"Error: No such container: {name}"], 1)

    def _inspect(self, args):
        name = args[-1]
        if name not in self.containers:
            return CommandResult(args, [], [f"Error: No such object: {name}"], 1)
        container = self.containers[name]
        if "-f" in args:
            fmt = args[args.index("-f") + 1]
            flag = container["paused"] if "Paused" in fmt else container["running"]
            return CommandResult(args, ["true" if flag else "false"], [], 0)
        return CommandResult(args, ["[", "{", f'"Name": "/{name}"', "}", "]"], [], 0)

    def _run(self, args):
        name = args[args.index("--name") + 1]
        rest = args[args.index("--name") + 2 :]
        detached = "-d" in rest
        remove = "--rm" in rest

        env = {}
        image = None
        command = []
        i = 0
        while i < len(rest):
            token = rest[i]
            if token == "-e":
                key, _, value = rest[i + 1].partition("=")
                env[key] = value
                i += 2
            elif token == "--group-add" or token == "-v":
                i += 2
            elif token.startswith("-"):
                i += 1
            else:
                image = token
                command = rest[i + 1 :]
                break

        if name in self.containers:
            return CommandResult(
                args,
                [],
                [f'docker: Error response from daemon: Conflict. "/{name}" in use.'],
                125,
            )
        if image is None or "__" in image:
            return CommandResult(
                args, [], ["docker: invalid reference format."], 125
            )

        if detached:
            self.add_container(name, image=image, running=True)
            self.containers[name]["env"] = env
            return CommandResult(args, ["0123456789abcdef"], [], 0)

        output = list(self.image_logs.get(image, []))
        if command[:1] == ["echo"]:
            output.append(" ".join(command[1:]))
        if command[:1] == ["false"]:
            return CommandResult(args, output, [], 1)
        if not remove:
            self.add_container(name, image=image, running=False)
        return CommandResult(args, output, [], 0)

    def _stop(self, args):
        name = args[-1]
        if name not in self.containers:
            return self._missing(args, name)
        self.containers[name]["running"] = False
        return CommandResult(args, [name], [], 0)

    def _kill(self, args):
        name = args[-1]
        if name not in self.containers:
            return self._missing(args, name)
        self.containers[name]["running"] = False
        return CommandResult(args, [name], [], 0)

    def _rm(self, args):
        name = args[-1]
        if name not in self.containers:
            return self._missing(args, name)
        if self.containers[name]["running"] and "-f" not in args:
            return CommandResult(
                args,
                [],
                [f"Error response from daemon: cannot remove container {name}"],
                1,
            )
        del self.containers[name]
        return CommandResult(args, [name], [], 0)

    def _exec(self, args):
        name = args[2]
        command = args[3:]
        if name not in self.containers:
            return self._missing(args, name)
        if command[:1] == ["echo"]:
            return CommandResult(args, [" ".join(command[1:])], [], 0)
        if command[:1] == ["warn"]:
            return CommandResult(args, ["done"], ["warning: something odd"], 0)
        if command[:1] == ["false"]:
            return CommandResult(args, [], [], 1)
        return CommandResult(args, [], [], 0)

    def _logs(self, args):
        name = args[-1]
        if name not in self.containers:
            return self._missing(args, name)
        return CommandResult(args, list(self.containers[name]["logs"]), [], 0)


@pytest.fixture
def engine():
    """Create a fake docker engine with no containers."""
    return FakeEngine()
