import json

from .errors import ArtifactError


def _artifact_from_message(msg: dict) -> dict:
    target = msg.get("target") or {}
    profile = msg.get("profile") or {}
    return {
        "name": target.get("name"),
        "kind": list(target.get("kind") or []),
        "executable": msg.get("executable"),
        "debuginfo": profile.get("debuginfo"),
    }


def parse_messages(lines, status_cb=None):
    """Collect compiler artifacts from cargo's `--message-format=json` stdout.

    Each JSON line is one message; only `compiler-artifact` messages are kept.
    Lines that are not JSON objects (build scripts may print to stdout) are
    skipped, but a line that looks like JSON and fails to parse is an error.
    """
    if isinstance(lines, str):
        lines = lines.splitlines()

    artifacts = []
    for i, line in enumerate(lines, start=1):
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            msg = json.loads(line)
        except ValueError as exc:
            raise ArtifactError(f"failed to parse cargo build output (line {i}): {exc}") from exc

        if msg.get("reason") != "compiler-artifact":
            continue
        artifact = _artifact_from_message(msg)
        artifacts.append(artifact)
        if status_cb is not None and artifact["executable"]:
            status_cb(f"Built {artifact['name']} -> {artifact['executable']}")
    return artifacts


def has_no_debuginfo(artifact: dict) -> bool:
    # cargo reports an integer level, or a string for the newer named levels.
    level = artifact.get("debuginfo")
    return level in (0, None, "none", "0")
