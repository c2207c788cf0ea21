"""Target discovery through `cargo metadata`.

Used when the command line does not name a target: the package is inspected
and the single runnable target is picked, the same way `cargo run` does.
"""

import json
import subprocess
from pathlib import Path

from .errors import MetadataError, ProfilerLaunchError, TargetSelectionError

CARGO_TOML = "Cargo.toml"


def find_crate_root(manifest_path: str | None = None, cwd: str | None = None) -> Path:
    if manifest_path:
        parent = Path(manifest_path).parent
        try:
            return parent.resolve(strict=True)
        except OSError as exc:
            raise MetadataError(
                f"failed to canonicalize manifest parent directory '{parent}'\n"
                "Hint: make sure your manifest path exists and points to a Cargo.toml file"
            ) from exc

    start = Path(cwd) if cwd else Path.cwd()
    start = start.resolve()
    for current in (start, *start.parents):
        if (current / CARGO_TOML).exists():
            return current
    raise MetadataError(f"could not find '{CARGO_TOML}' in '{start}' or any parent directory")


def load_metadata(cargo: str, manifest_path: str | None = None) -> dict:
    cmd = [cargo, "metadata", "--no-deps", "--format-version", "1"]
    if manifest_path:
        cmd += ["--manifest-path", str(manifest_path)]
    try:
        proc = subprocess.run(cmd, stdout=subprocess.PIPE, text=True)
    except OSError as exc:
        raise ProfilerLaunchError(f"failed to execute cargo metadata command: {exc}") from exc
    if proc.returncode != 0:
        raise MetadataError(f"failed to access crate metadata (cargo metadata exit status {proc.returncode})")
    try:
        return json.loads(proc.stdout)
    except ValueError as exc:
        raise MetadataError(f"failed to parse cargo metadata output: {exc}") from exc


def _under(path: str, root: Path) -> bool:
    if not path:
        return False
    try:
        return Path(path).resolve().is_relative_to(root)
    except OSError:
        return False


def find_unique_target(
    metadata: dict,
    kinds,
    crate_root: Path,
    package: str | None = None,
    target_name: str | None = None,
):
    """Pick the single target of an accepted kind.

    Returns `(target, announce)` where target is a dict with `package`,
    `target` and `kind` keys, and announce is False when the choice is the
    `default-run` of the only candidate package (nothing worth telling the user).
    """
    crate_root = Path(crate_root).resolve()
    packages = [
        p
        for p in metadata.get("packages") or []
        if (p.get("name") == package if package else _under(p.get("manifest_path", ""), crate_root))
    ]
    if not packages:
        if package:
            raise MetadataError(f"workspace has no package named {package}")
        raise MetadataError(f"failed to find any package in '{crate_root}' or below")

    has_default_run = False
    candidates = []
    for pkg in packages:
        default_run = pkg.get("default_run")
        if default_run:
            has_default_run = True
        for t in pkg.get("targets") or []:
            t_kinds = t.get("kind") or []
            if not any(k in kinds for k in t_kinds):
                continue
            if default_run and t.get("name") != default_run:
                continue
            if target_name and t.get("name") != target_name:
                continue
            candidates.append({"package": pkg.get("name"), "target": t.get("name"), "kind": list(t_kinds)})

    if not candidates:
        raise TargetSelectionError(
            "crate has no automatically selectable target:\n"
            "Hint: try passing `--example <example>` or similar to choose a binary"
        )
    if len(candidates) > 1:
        names = ", ".join(f"{c['target']} ({c['package']})" for c in candidates)
        raise TargetSelectionError(
            f"several possible targets found: {names}, please pass an explicit target."
        )

    announce = len(packages) != 1 or not has_default_run
    return candidates[0], announce
