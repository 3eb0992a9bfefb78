"""
Classification of CLI invocation results.

An invocation has failed if the process reported a non-zero (or missing)
exit status, or if anything was written to standard error. The second
class can be suppressed by callers whose operations tolerate noisy stderr;
the first never can.
"""

from dm_common.errors import EngineOperationFailedError
from dm_common.models import CommandResult

# Substrings the docker CLI prints when the daemon is not reachable
CANNOT_CONNECT_MARKERS = (
    "Cannot connect to the Docker daemon",
    "error during connect",
)


def is_cannot_connect(result: CommandResult) -> bool:
    """True if the result shows the engine could not be reached."""
    if not result.launched:
        return True
    stderr = result.stderr_text
    return any(marker in stderr for marker in CANNOT_CONNECT_MARKERS)


def check_result(
    result: CommandResult, action: str, ignore_stderr: bool = False
) -> CommandResult:
    """
    Raise if an invocation failed, otherwise return the result unchanged.

    Args:
        result: Captured invocation result
        action: Human readable description used in the error message
        ignore_stderr: Do not treat non-empty stderr as a failure

    Returns:
        The same CommandResult

    Raises:
        EngineOperationFailedError: If the invocation failed
    """
    if not result.succeeded:
        detail = result.stderr_text or f"exit status {result.returncode}"
        raise _failure(result, f"Error {action}: {detail}")

    if result.stderr and not ignore_stderr:
        raise _failure(result, f"Error {action}: {result.stderr_text}")

    return result


def _failure(result: CommandResult, message: str) -> EngineOperationFailedError:
    return EngineOperationFailedError(
        message,
        command=result.args,
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
    )
