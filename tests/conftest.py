from __future__ import annotations

import shlex
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence


class FakeExecutor:
    """Answer commands with canned output, picked by a fragment of the command line."""

    def __init__(self, outputs: dict[str, str | Exception]) -> None:
        self.outputs = outputs
        self.calls: list[list[str]] = []

    def _output(self, args: Sequence[str]) -> str:
        self.calls.append(list(args))
        command = shlex.join(args)
        for fragment, output in self.outputs.items():
            if fragment in command:
                if isinstance(output, Exception):
                    raise output
                return output
        msg = f"unexpected command: {command}"
        raise AssertionError(msg)

    def stream_lines(self, args: Sequence[str], on_line: Callable[[str], None]) -> None:
        for line in self._output(args).splitlines():
            on_line(line)

    def run_text(self, args: Sequence[str]) -> str:
        return self._output(args)


@pytest.fixture
def make_executor() -> Callable[[dict[str, str | Exception]], FakeExecutor]:
    return FakeExecutor
