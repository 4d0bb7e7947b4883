"""External binary invocation for builders.

Wraps :func:`pkgpipe.utils.run_command` with the contract builders rely on:
output is forwarded to the reporter line by line, and any failure (spawn error
or non-zero exit) becomes a :class:`ProcessError` that names the binary and
its arguments.  No timeout is applied.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pkgpipe.lifecycle import MessageError
from pkgpipe.reporter import Reporter
from pkgpipe.utils import run_command


@dataclass
class CommandResult:
    """Outcome of a finished external process."""

    binary: str
    args: list[str] = field(default_factory=list)
    exit_code: int = 0
    stdout: str = ""
    stderr: str = ""

    @property
    def command_line(self) -> str:
        return " ".join([self.binary, *self.args])


class ProcessError(MessageError):
    """Raised when an external binary cannot be spawned or exits non-zero."""

    def __init__(self, message: str, result: CommandResult) -> None:
        self.result = result
        super().__init__(message)


def _forward_output(result: CommandResult, reporter: Reporter) -> None:
    for line in result.stdout.splitlines():
        if line.strip():
            reporter.info(line)
    for line in result.stderr.splitlines():
        if line.strip():
            reporter.warning(line)


async def run_binary(
    binary: str | Path,
    args: list[str],
    cwd: str | Path,
    reporter: Reporter,
) -> CommandResult:
    """Run *binary* with *args* in *cwd* and wait for it to exit.

    Returns:
        The :class:`CommandResult` of a successful (exit code 0) run.

    Raises:
        ProcessError: If the binary cannot be started or exits non-zero. The
            captured stdout/stderr are kept on ``exc.result``.
    """
    result = CommandResult(binary=str(binary), args=[str(a) for a in args])

    try:
        exit_code, stdout, stderr = await run_command(
            [result.binary, *result.args], cwd=cwd
        )
    except (FileNotFoundError, PermissionError) as exc:
        result.exit_code = -1
        result.stderr = str(exc)
        raise ProcessError(
            f"Could not start {result.command_line}: {exc}", result
        ) from exc

    result.exit_code = exit_code
    result.stdout = stdout
    result.stderr = stderr
    _forward_output(result, reporter)

    if exit_code != 0:
        details = stderr or stdout
        message = f"Command failed with exit code {exit_code}: {result.command_line}"
        if details:
            message = f"{message}\n{details}"
        raise ProcessError(message, result)

    return result
