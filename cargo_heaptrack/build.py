"""Build step: run cargo for the selected target and find the executable it produced."""

import subprocess
import sys
from pathlib import Path

from .constants import MESSAGE_FORMAT_FLAG, PROFILE_DIRS
from .errors import ArtifactError, BuildError, ProfilerLaunchError
from .messages import has_no_debuginfo, parse_messages


def build_command(plan, cargo: str = "cargo"):
    cmd = [cargo]
    # `cargo bench --no-run` picks the bench profile; `--profile` on
    # `cargo build` cannot select it without also changing the target kind.
    if not plan.dev and plan.target_flag == "bench":
        cmd += ["bench", "--no-run"]
    elif plan.target_flag == "unit_test":
        cmd += ["test", "--no-run"]
    else:
        cmd.append("build")

    if plan.profile:
        cmd += ["--profile", plan.profile]
    elif not plan.dev and plan.target_flag != "bench":
        cmd.append("--release")

    if plan.package:
        cmd += ["--package", plan.package]

    if plan.target_flag == "unit_test":
        if plan.target_name:
            if "lib" in plan.target_kinds:
                cmd.append("--lib")
            else:
                cmd += ["--bin", plan.target_name]
    elif plan.target_flag:
        cmd += [f"--{plan.target_flag}", plan.target_name]

    if plan.manifest_path:
        cmd += ["--manifest-path", str(plan.manifest_path)]
    if plan.features:
        cmd += ["--features", plan.features]
    if plan.no_default_features:
        cmd.append("--no-default-features")

    cmd.extend(plan.cargo_args)
    cmd.append(MESSAGE_FORMAT_FLAG)
    return cmd


def run_build(plan, cargo: str = "cargo", status_cb=None):
    """Run cargo and return the compiler artifacts it reported.

    Diagnostics stream to our stderr; stdout carries the JSON messages.
    """
    cmd = build_command(plan, cargo)
    if status_cb is not None:
        status_cb("Running " + " ".join(cmd))
    try:
        proc = subprocess.run(cmd, stdout=subprocess.PIPE, text=True)
    except OSError as exc:
        raise ProfilerLaunchError(f"failed to execute cargo build command: {exc}") from exc

    if proc.returncode != 0:
        raise BuildError(proc.returncode)
    return parse_messages(proc.stdout, status_cb=status_cb)


def profile_dir(profile: str) -> str:
    return PROFILE_DIRS.get(profile, profile)


def expected_executable_path(target_dir, profile: str, kind: str, name: str, platform: str | None = None) -> Path:
    """Where cargo puts a binary or example for the given profile.

    Tests and benches get a hashed name under `deps/` and have no fixed path.
    """
    platform = sys.platform if platform is None else platform
    base = Path(target_dir) / profile_dir(profile)
    if kind == "example":
        base = base / "examples"
    elif kind != "bin":
        raise ValueError(f"no fixed output path for {kind} targets")
    filename = name + (".exe" if platform.startswith("win") else "")
    return base / filename


def resolve_executable(plan, artifacts, target_dir=None) -> str:
    if not any(a.get("executable") for a in artifacts):
        raise ArtifactError("build artifacts do not contain any executable to profile")
    if not plan.target_name:
        raise ArtifactError("no target for profiling")

    kinds = plan.accepted_kinds()
    matches = []
    for a in artifacts:
        if not a.get("executable") or a.get("name") != plan.target_name:
            continue
        if any(k in kinds for k in a.get("kind") or []):
            if a["executable"] not in (m["executable"] for m in matches):
                matches.append(a)

    if not matches:
        available = [(a.get("kind"), a.get("name")) for a in artifacts]
        msg = (
            f"could not find desired target ({list(kinds)}, {plan.target_name!r}) "
            f"in the targets for this crate: {available}"
        )
        if target_dir is not None and plan.target_flag in ("bin", "example"):
            expected = expected_executable_path(target_dir, plan.cargo_profile(), plan.target_flag, plan.target_name)
            msg += f"\nexpected the executable at {expected}"
        raise ArtifactError(msg)
    if len(matches) > 1:
        paths = ", ".join(m["executable"] for m in matches)
        raise ArtifactError(
            f"target {plan.target_name!r} is ambiguous, several executables were built: {paths}\n"
            "Hint: pass --package to pick one"
        )

    artifact = matches[0]
    if not plan.dev and has_no_debuginfo(artifact):
        warn_missing_debuginfo(plan.debuginfo_profile())
    return artifact["executable"]


def warn_missing_debuginfo(profile: str, stream=None):
    stream = sys.stderr if stream is None else stream
    print(
        "\nWARNING: profiling without debuginfo. Enable symbol information by adding "
        "the following lines to Cargo.toml:\n",
        file=stream,
    )
    print(f"[profile.{profile}]", file=stream)
    print("debug = true\n", file=stream)
    print("Or set this environment variable:\n", file=stream)
    env_name = profile.upper().replace("-", "_")
    print(f"CARGO_PROFILE_{env_name}_DEBUG=true\n", file=stream, flush=True)
