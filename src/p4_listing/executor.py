"""Running p4 commands.

The rest of the package only talks to p4 through a `CommandExecutor`, so
the parsing can be fed canned output instead of a live server.
"""

from __future__ import annotations

import shlex
import subprocess  # noqa: S404
import tempfile
from typing import TYPE_CHECKING, Protocol

from p4_listing.exceptions import LineScanError, P4CommandError
from p4_listing.logging import logger

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from pathlib import Path

    LineHandler = Callable[[str], None]


class CommandExecutor(Protocol):
    """Runs a command and hands its output back, either line by line or as a whole."""

    def stream_lines(self, args: Sequence[str], on_line: LineHandler) -> None: ...

    def run_text(self, args: Sequence[str]) -> str: ...


class SubprocessExecutor:
    """Run commands as child processes.

    Args:
        cwd: Working directory of the commands, the current one if None.
        env: Environment of the commands, the current one if None.
        encoding: Encoding of the command output.
    """

    def __init__(
        self,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        encoding: str = "utf-8",
    ) -> None:
        self.cwd = cwd
        self.env = env
        self.encoding = encoding

    def stream_lines(self, args: Sequence[str], on_line: LineHandler) -> None:
        """Run a command and call `on_line` for each line of its output, while it runs.

        Lines are handed over in output order, without their line ending. The
        command writes into a pipe read here, so it is held back whenever
        `on_line` is slower than the command.

        When `on_line` raises, the pipe is closed: the command fails on its next
        write and stops. The exception raised by `on_line` is then re-raised as
        is, whatever the command exit status.

        Args:
            args (Sequence[str]): the command and its arguments
            on_line (LineHandler): called with each line of output

        Raises:
            P4CommandError: if the command cannot start or exits with a non-zero status.
            LineScanError: if the output cannot be read or decoded, and the command succeeded.
        """
        command = shlex.join(args)
        logger.debug("Running command", command=command)
        handler_error: Exception | None = None
        scan_error: LineScanError | None = None
        with tempfile.TemporaryFile() as stderr_sink:
            try:
                proc = subprocess.Popen(  # noqa: S603
                    list(args),
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=stderr_sink,
                    cwd=self.cwd,
                    env=self.env,
                )
            except OSError as e:
                raise P4CommandError(command=command, returncode=None, stderr=str(e)) from e

            try:
                for raw_line in proc.stdout:
                    line = raw_line.removesuffix(b"\n").removesuffix(b"\r").decode(self.encoding)
                    try:
                        on_line(line)
                    except Exception as e:  # noqa: BLE001
                        handler_error = e
                        break
            except (OSError, UnicodeDecodeError) as e:
                scan_error = LineScanError(command=command, reason=str(e))
            finally:
                proc.stdout.close()
                returncode = proc.wait()

            if handler_error is not None:
                logger.warning("Stopped reading command output", command=command, error=str(handler_error))
                raise handler_error
            if returncode != 0:
                stderr_sink.seek(0)
                stderr = stderr_sink.read().decode(self.encoding, errors="replace")
                raise P4CommandError(command=command, returncode=returncode, stderr=stderr)
            if scan_error is not None:
                raise scan_error

    def run_text(self, args: Sequence[str]) -> str:
        """Run a command to completion and return its whole output.

        Args:
            args (Sequence[str]): the command and its arguments

        Raises:
            P4CommandError: if the command cannot start or exits with a non-zero status.

        Returns:
            str: the standard output of the command
        """
        command = shlex.join(args)
        logger.debug("Running command", command=command)
        try:
            out = subprocess.run(  # noqa: S603
                list(args),
                stdin=subprocess.DEVNULL,
                capture_output=True,
                cwd=self.cwd,
                env=self.env,
                encoding=self.encoding,
                errors="replace",
                check=False,
            )
        except OSError as e:
            raise P4CommandError(command=command, returncode=None, stderr=str(e)) from e
        if out.returncode != 0:
            raise P4CommandError(command=command, returncode=out.returncode, stderr=out.stderr)
        return out.stdout
