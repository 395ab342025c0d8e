from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING

import pytest

from p4_listing import cli
from p4_listing import settings as settings_module

if TYPE_CHECKING:
    from pathlib import Path

FAKE_P4 = '''\
import sys

args = sys.argv[1:]
if args[-2:] == ["client", "-o"]:
    print("... Client e2e_ws")
    print("... Stream //Game/Main")
    print("... View0 //Game/Main/... //e2e_ws/...")
elif args[-3:-1] == ["depot", "-o"]:
    print("... Depot " + args[-1])
    print("... StreamDepth //" + args[-1] + "/1")
elif "fstat" in args:
    for name, action, change in [
        ("Source/zeta.cpp", "edit", "30"),
        ("Content/Maps/Level%402.umap", "add", "21"),
        ("source/Alpha.h", "integrate", "12"),
    ]:
        print("... depotFile //Game/Main/" + name)
        print("... headAction " + action)
        print("... headChange " + change)
        print("... headType text")
        print()
    print("... depotFile //Game/Main/unterminated.txt")
else:
    sys.stderr.write("unknown command: " + " ".join(args))
    sys.exit(1)
'''

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="fake p4 is a shebang script")


@pytest.fixture
def fake_p4(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setattr(settings_module, "ENV_FILE", "")
    script = tmp_path / "p4"
    script.write_text(f"#!{sys.executable}\n{FAKE_P4}", encoding="utf-8")
    script.chmod(0o755)
    return script


def test_end_to_end_files_listing(fake_p4: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["--p4-bin", str(fake_p4), "--client", "e2e_ws", "files", "--format", "jsonl"])

    assert exit_code == 0
    recs = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert [rec["path"] for rec in recs] == [
        "Content/Maps/Level%402.umap",
        "source/Alpha.h",
        "Source/zeta.cpp",
    ]
    assert recs[1]["action"] == "integrate"
    assert recs[2]["change_number"] == "30"


def test_end_to_end_depot(fake_p4: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["--p4-bin", str(fake_p4), "--client", "e2e_ws", "depot"]) == 0
    assert capsys.readouterr().out == "Game\n"


def test_end_to_end_reports_p4_failure(fake_p4: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["--p4-bin", str(fake_p4), "files", "--depth", "2"]) == 0
    capsys.readouterr()

    fake_p4.write_text(f"#!{sys.executable}\nimport sys\nsys.stderr.write('connect failed')\nsys.exit(1)\n")

    assert cli.main(["--p4-bin", str(fake_p4), "files", "--depth", "2"]) == 1
    assert "connect failed" in capsys.readouterr().err
