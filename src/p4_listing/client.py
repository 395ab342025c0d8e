from __future__ import annotations

import shlex
from typing import TYPE_CHECKING

from p4_listing.config import DEFAULT_FILE_SPEC, FSTAT_DELETED_FILTER, FSTAT_FIELDS
from p4_listing.depot_paths import depot_name, stream_depth
from p4_listing.depth_context import DepthContext
from p4_listing.exceptions import InvalidCommandError, MissingContextError, P4ListingError
from p4_listing.executor import SubprocessExecutor
from p4_listing.logging import logger
from p4_listing.path_codec import escape_path
from p4_listing.record_parser import RecordParser, parse_spec

if TYPE_CHECKING:
    from collections.abc import Sequence

    from p4_listing.config import FileRecord
    from p4_listing.executor import CommandExecutor
    from p4_listing.settings import Settings

_TAGGED_MARKERS = ("-ztag", "-z tag", "fstat")


class P4Client:
    """Read-side access to one Perforce client workspace.

    Args:
        settings: Server, user, client and charset to run p4 with.
        executor: Runs the p4 commands, child processes by default.
    """

    def __init__(self, settings: Settings, executor: CommandExecutor | None = None) -> None:
        self.settings = settings
        self.executor: CommandExecutor = executor or SubprocessExecutor()
        self.stream = ""
        self._depth = DepthContext(self._resolve_stream_depth)

    @property
    def display_name(self) -> str:
        return self.settings.port

    def base_command(self) -> list[str]:
        """Get `p4` and its global options, each only present when configured."""
        args = [self.settings.p4_bin]
        for flag, value in (
            ("-p", self.settings.port),
            ("-u", self.settings.user),
            ("-c", self.settings.client),
            ("-C", self.settings.charset),
        ):
            if value:
                args.extend((flag, value))
        return args

    def set_stream_name(self, stream: str) -> None:
        """Switch to another stream; its depth is resolved again on next use."""
        self.stream = stream
        self._depth.invalidate()

    def get_client_spec(self) -> dict[str, str]:
        args = [*self.base_command(), "-z", "tag", "client", "-o"]
        try:
            return parse_spec(self.executor.run_text(args))
        except P4ListingError as e:
            logger.warning("Getting client spec failed", client=self.settings.client, error=str(e))
            raise

    def get_depot_spec(self, name: str) -> dict[str, str]:
        args = [*self.base_command(), "-z", "tag", "depot", "-o", name]
        try:
            return parse_spec(self.executor.run_text(args))
        except P4ListingError as e:
            logger.warning("Getting depot spec failed", depot=name, error=str(e))
            raise

    def depot(self) -> str:
        """Get the name of the depot the client maps, from its stream or else its first view.

        Raises:
            MissingContextError: if the client spec has neither a Stream nor a View entry.

        Returns:
            str: the depot name, ie 'UE4' for a client of '//UE4/Release'
        """
        spec = self.get_client_spec()

        stream = spec.get("Stream", "")
        if len(stream) > 3:  # noqa: PLR2004
            return depot_name(stream)

        for key, value in spec.items():
            if key.startswith("View"):
                return depot_name(value)

        raise MissingContextError(
            subject=self.settings.client,
            reason="could not find any View or Stream entries in client spec",
        )

    def stream_depth(self) -> int:
        """Get the stream depth of the client's depot, cached until the stream changes."""
        return self._depth.get()

    def _resolve_stream_depth(self) -> int:
        depot = self.depot()
        depot_spec = self.get_depot_spec(depot)
        depth_path = depot_spec.get("StreamDepth")
        if depth_path is None:
            raise MissingContextError(subject=depot, reason="no StreamDepth field in depot spec")
        return stream_depth(depth_path)

    def list_depot_files(
        self,
        file_specs: Sequence[str] | None = None,
        *,
        escape: bool = False,
        depth: int | None = None,
    ) -> list[FileRecord]:
        """List the non-deleted head revisions of the client's files with `p4 fstat`.

        Args:
            file_specs (Sequence[str] | None): specs relative to the client root, '...' if empty
            escape (bool): treat specs as literal paths and escape their reserved characters
            depth (int | None): stream depth to use instead of the client's one

        Returns:
            list[FileRecord]: the files, sorted by path ignoring case
        """
        specs = list(file_specs or [DEFAULT_FILE_SPEC])
        if escape:
            specs = [escape_path(spec) for spec in specs]
        args = [
            *self.base_command(),
            "fstat",
            "-T",
            ",".join(FSTAT_FIELDS),
            "-Ol",
            "-F",
            FSTAT_DELETED_FILTER,
        ]
        args.extend(f"//{self.settings.client}/{spec}" for spec in specs)
        return self.run_and_parse_depot_files(args, depth=depth)

    def run_and_parse_depot_files(self, args: Sequence[str], *, depth: int | None = None) -> list[FileRecord]:
        """Run a command printing tagged file records, and parse its output while it runs.

        Each record must have a depotFile, and may have an action, change, type,
        digest, headAction, headChange or headType.

        Args:
            args (Sequence[str]): the command, it must be `fstat` or use `-z tag`
            depth (int | None): stream depth to use instead of the client's one

        Raises:
            InvalidCommandError: if the command would not print tagged output.

        Returns:
            list[FileRecord]: the files, sorted by path ignoring case
        """
        command = shlex.join(args)
        if not any(marker in command for marker in _TAGGED_MARKERS):
            raise InvalidCommandError(command=command)

        try:
            parser = RecordParser(depth if depth is not None else self.stream_depth())
            logger.info("Listing depot files", command=command, depth=parser.depth, stream=self.stream)
            self.executor.stream_lines(args, parser.feed)
        except P4ListingError as e:
            logger.warning("Listing depot files failed", command=command, error=str(e))
            raise

        records = parser.results()
        logger.info("Listed depot files", count=len(records), prefix=parser.prefix)
        return records

    def get_variable(self, variable: str) -> str:
        """Get a local Perforce setting with `p4 set -q`, or an empty string when unset."""
        found = ""
        key = f"{variable}="

        def on_line(line: str) -> None:
            nonlocal found
            if line.startswith(key):
                found = line[len(key) :]

        self.executor.stream_lines([*self.base_command(), "set", "-q", variable], on_line)
        return found
