from dataclasses import dataclass


@dataclass(frozen=True)
class P4ListingError(Exception):
    """Base exception for errors in the p4_listing module."""


@dataclass(frozen=True)
class MalformedLineError(P4ListingError):
    """Raised when a line of tagged output does not look like `... <tag> <value>`."""

    line: str

    def __str__(self) -> str:
        return f"expected '... <tag>', but got: {self.line}"


@dataclass(frozen=True)
class MissingContextError(P4ListingError):
    """Raised when a depth, prefix or depot name cannot be determined."""

    subject: str
    reason: str

    def __str__(self) -> str:
        return f"{self.reason}: '{self.subject}'"


@dataclass(frozen=True)
class EscapeSequenceError(P4ListingError):
    """Raised when an escaped path holds a truncated or malformed `%XX` sequence."""

    path: str
    fragment: str

    def __str__(self) -> str:
        return f"truncated or malformed escape sequence '{self.fragment}' in '{self.path}'"


@dataclass(frozen=True)
class P4CommandError(P4ListingError):
    """Raised when a p4 command fails to launch or exits with a non-zero status.

    A `returncode` of None means the process could not be started at all.
    """

    command: str
    returncode: int | None
    stderr: str = ""

    def __str__(self) -> str:
        if self.returncode is None:
            return f"unable to run '{self.command}': {self.stderr}"
        detail = f": {self.stderr.strip()}" if self.stderr.strip() else ""
        return f"'{self.command}' exited with status {self.returncode}{detail}"


@dataclass(frozen=True)
class LineScanError(P4ListingError):
    """Raised when the output of a command cannot be read or decoded as lines."""

    command: str
    reason: str

    def __str__(self) -> str:
        return f"error reading output of '{self.command}': {self.reason}"


@dataclass(frozen=True)
class InvalidCommandError(P4ListingError):
    """Raised when a command would not produce tagged output."""

    command: str
    message: str = "missing '-z tag' in non-fstat command"

    def __str__(self) -> str:
        return f"{self.message}: {self.command}"
