"""
Process invocation primitive.

Runs a command line and captures its standard output and standard error as
lists of lines together with the exit status. Both a blocking and an
asyncio variant are provided with identical semantics.
"""

import asyncio
import logging
import subprocess
from collections.abc import Sequence

from dm_common.models import CommandResult

logger = logging.getLogger(__name__)


def _split_lines(data: bytes) -> list[str]:
    """Decode process output and split it into lines, dropping trailing blanks."""
    lines = data.decode(errors="replace").splitlines()
    while lines and not lines[-1].strip():
        lines.pop()
    return lines


class CommandRunner:
    """
    Executes CLI invocations and captures their output.

    No timeout is applied: an invocation runs until the process exits.
    A process that cannot be launched produces a CommandResult with
    returncode None and the launch error as its only stderr line.
    """

    def run(self, args: Sequence[str]) -> CommandResult:
        """
        Run a command and block until it exits.

        Args:
            args: Argument list, executable first

        Returns:
            CommandResult with captured output
        """
        args = list(args)
        logger.debug(f"Running: {' '.join(args)}")

        try:
            completed = subprocess.run(args, capture_output=True, check=False)
        except OSError as e:
            logger.debug(f"Failed to launch {args[0]}: {e}")
            return CommandResult(args=args, stderr=[str(e)], returncode=None)

        return CommandResult(
            args=args,
            stdout=_split_lines(completed.stdout),
            stderr=_split_lines(completed.stderr),
            returncode=completed.returncode,
        )

    async def run_async(self, args: Sequence[str]) -> CommandResult:
        """
        Run a command without blocking the event loop.

        Args:
            args: Argument list, executable first

        Returns:
            CommandResult with captured output
        """
        args = list(args)
        logger.debug(f"Running (async): {' '.join(args)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.debug(f"Failed to launch {args[0]}: {e}")
            return CommandResult(args=args, stderr=[str(e)], returncode=None)

        stdout, stderr = await process.communicate()

        return CommandResult(
            args=args,
            stdout=_split_lines(stdout),
            stderr=_split_lines(stderr),
            returncode=process.returncode,
        )
