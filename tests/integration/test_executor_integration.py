from __future__ import annotations

import sys

import pytest

from p4_listing.client import P4Client
from p4_listing.exceptions import LineScanError, MalformedLineError, P4CommandError
from p4_listing.executor import SubprocessExecutor
from p4_listing.settings import Settings


def python_command(source: str) -> list[str]:
    return [sys.executable, "-c", source]


@pytest.mark.integration
def test_stream_lines_delivers_lines_in_order() -> None:
    lines: list[str] = []

    SubprocessExecutor().stream_lines(
        python_command("import sys\nfor i in range(5000):\n    sys.stdout.write(f'line {i}\\r\\n')"),
        lines.append,
    )

    assert lines == [f"line {i}" for i in range(5000)]


@pytest.mark.integration
def test_stream_lines_keeps_blank_lines() -> None:
    lines: list[str] = []

    SubprocessExecutor().stream_lines(python_command("print('a'); print(); print('b')"), lines.append)

    assert lines == ["a", "", "b"]


@pytest.mark.integration
def test_stream_lines_handler_error_wins_over_exit_status() -> None:
    boom = ValueError("stop reading")
    seen: list[str] = []

    def on_line(line: str) -> None:
        seen.append(line)
        if len(seen) == 3:
            raise boom

    with pytest.raises(ValueError, match="stop reading") as exc_info:
        SubprocessExecutor().stream_lines(
            python_command("while True:\n    print('x' * 200, flush=True)"),
            on_line,
        )

    assert exc_info.value is boom
    assert len(seen) == 3


@pytest.mark.integration
def test_stream_lines_reports_exit_status() -> None:
    lines: list[str] = []

    with pytest.raises(P4CommandError) as exc_info:
        SubprocessExecutor().stream_lines(
            python_command("import sys; print('partial'); sys.stderr.write('no such client'); sys.exit(3)"),
            lines.append,
        )

    assert exc_info.value.returncode == 3
    assert "no such client" in exc_info.value.stderr
    assert lines == ["partial"]


@pytest.mark.integration
def test_stream_lines_reports_launch_failure() -> None:
    with pytest.raises(P4CommandError) as exc_info:
        SubprocessExecutor().stream_lines(["p4-listing-no-such-binary"], lambda _line: None)

    assert exc_info.value.returncode is None


@pytest.mark.integration
def test_stream_lines_reports_undecodable_output() -> None:
    with pytest.raises(LineScanError):
        SubprocessExecutor().stream_lines(
            python_command("import sys; sys.stdout.buffer.write(b'ok\\n\\xff\\xfe\\n'); sys.stdout.flush()"),
            lambda _line: None,
        )


@pytest.mark.integration
def test_run_text_returns_output_and_raises_on_failure() -> None:
    executor = SubprocessExecutor()

    assert executor.run_text(python_command("print('... Depot UE4')")) == "... Depot UE4\n"
    with pytest.raises(P4CommandError):
        executor.run_text(python_command("import sys; sys.exit(1)"))


@pytest.mark.integration
def test_client_parses_streamed_fstat_output() -> None:
    source = (
        "for name in ['b.txt', 'A.txt']:\n"
        "    print('... depotFile //UE4/Release/Engine/' + name)\n"
        "    print('... headAction edit')\n"
        "    print('... headChange 3')\n"
        "    print()\n"
    )

    class FakeFstat(SubprocessExecutor):
        def stream_lines(self, args, on_line):  # noqa: ANN001, ANN202
            assert "fstat" in args
            super().stream_lines(python_command(source), on_line)

    client = P4Client(Settings(client="ws"), FakeFstat())

    recs = client.list_depot_files(depth=2)

    assert [rec.path for rec in recs] == ["Engine/A.txt", "Engine/b.txt"]


@pytest.mark.integration
def test_client_stops_command_on_malformed_output() -> None:
    source = "print('... depotFile //UE4/Release/a.txt')\nprint('oops')\nwhile True:\n    print('... x y', flush=True)"

    class FakeFstat(SubprocessExecutor):
        def stream_lines(self, args, on_line):  # noqa: ANN001, ANN202
            super().stream_lines(python_command(source), on_line)

    client = P4Client(Settings(client="ws"), FakeFstat())

    with pytest.raises(MalformedLineError) as exc_info:
        client.list_depot_files(depth=2)

    assert exc_info.value.line == "oops"
