import json
import os
import stat
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SCRIPT = REPO_ROOT / "cargo_heaptrack.py"

CARGO_STUB = """\
import json, os, sys

with open(os.environ["STUB_CARGO_LOG"], "a", encoding="utf-8") as f:
    f.write(json.dumps(sys.argv[1:]) + "\\n")

if sys.argv[1] == "metadata":
    code = int(os.environ.get("STUB_METADATA_EXIT", "0"))
    if code:
        sys.exit(code)
    with open(os.environ["STUB_METADATA"], encoding="utf-8") as f:
        sys.stdout.write(f.read())
    sys.exit(0)

sys.stderr.write("   Compiling stub v0.1.0\\n")
code = int(os.environ.get("STUB_CARGO_EXIT", "0"))
if code == 0:
    with open(os.environ["STUB_MESSAGES"], encoding="utf-8") as f:
        for msg in json.load(f):
            print(json.dumps(msg))
sys.exit(code)
"""

HEAPTRACK_STUB = """\
import json, os, sys

with open(os.environ["STUB_HEAPTRACK_LOG"], "a", encoding="utf-8") as f:
    f.write(json.dumps(sys.argv[1:]) + "\\n")
if os.environ.get("STUB_HEAPTRACK_SIGNAL"):
    os.kill(os.getpid(), int(os.environ["STUB_HEAPTRACK_SIGNAL"]))
sys.exit(int(os.environ.get("STUB_HEAPTRACK_EXIT", "0")))
"""


def artifact_message(name, kind, executable, debuginfo=2):
    return {
        "reason": "compiler-artifact",
        "package_id": f"{name} 0.1.0",
        "target": {"name": name, "kind": [kind], "src_path": f"/src/{name}.rs"},
        "profile": {"opt_level": "3", "debuginfo": debuginfo, "test": False},
        "executable": executable,
    }


def _write_stub(path: Path, body: str):
    path.write_text(f"#!{sys.executable}\n{body}", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


class StubTools:
    """Fake `cargo` and `heaptrack` executables that log how they were called."""

    def __init__(self, root: Path):
        self.root = root
        self.cargo = _write_stub(root / "cargo", CARGO_STUB)
        self.heaptrack = _write_stub(root / "heaptrack", HEAPTRACK_STUB)
        self.cargo_log = root / "cargo.log"
        self.heaptrack_log = root / "heaptrack.log"
        self.messages = root / "messages.json"
        self.metadata = root / "metadata.json"
        self.cargo_exit = 0
        self.metadata_exit = 0
        self.heaptrack_exit = 0
        self.heaptrack_signal = None
        self.set_messages([])
        self.set_metadata({"packages": [], "target_directory": str(root / "target")})

    def set_messages(self, messages):
        self.messages.write_text(json.dumps(messages), encoding="utf-8")

    def set_metadata(self, metadata):
        self.metadata.write_text(json.dumps(metadata), encoding="utf-8")

    def env(self):
        env = dict(os.environ)
        env.update(
            {
                "CARGO": str(self.cargo),
                "HEAPTRACK": str(self.heaptrack),
                "STUB_CARGO_LOG": str(self.cargo_log),
                "STUB_HEAPTRACK_LOG": str(self.heaptrack_log),
                "STUB_MESSAGES": str(self.messages),
                "STUB_METADATA": str(self.metadata),
                "STUB_CARGO_EXIT": str(self.cargo_exit),
                "STUB_HEAPTRACK_EXIT": str(self.heaptrack_exit),
                "STUB_METADATA_EXIT": str(self.metadata_exit),
                "STUB_HEAPTRACK_SIGNAL": str(int(self.heaptrack_signal)) if self.heaptrack_signal else "",
            }
        )
        return env

    def _calls(self, log: Path):
        if not log.exists():
            return []
        return [json.loads(line) for line in log.read_text(encoding="utf-8").splitlines()]

    def cargo_calls(self):
        return self._calls(self.cargo_log)

    def heaptrack_calls(self):
        return self._calls(self.heaptrack_log)


@pytest.fixture
def stub_tools(tmp_path):
    if os.name != "posix":
        pytest.skip("stub executables rely on shebang lines")
    return StubTools(tmp_path)
