import argparse
import sys
import time

from . import __version__
from .build import resolve_executable, run_build
from .config import cargo_executable, heaptrack_executable, require_tool
from .constants import EXIT_INTERRUPTED, SUBCOMMAND_NAME, TRAILING_DELIMITER
from .errors import ArtifactError, HeaptrackError
from .heaptrack import run_heaptrack
from .metadata import find_crate_root, find_unique_target, load_metadata
from .plan import InvocationPlan

_T0 = time.time()

_TARGET_FLAGS = ("bin", "example", "test", "bench", "unit_test")

# Repeatable flags whose values are themselves flags (`--cargo-arg --locked`).
_PASSTHROUGH_FLAGS = ("--cargo-arg", "--heaptrack-arg")


def status(msg: str, enabled: bool = True):
    """Emit a lightweight progress message to stderr."""
    if not enabled:
        return
    dt = time.time() - _T0
    print(f"[{dt:6.1f}s] {msg}", file=sys.stderr, flush=True)


def split_trailing(argv):
    """Split at the first `--`; everything after it is passed on untouched."""
    argv = list(argv)
    if TRAILING_DELIMITER in argv:
        i = argv.index(TRAILING_DELIMITER)
        return argv[:i], argv[i + 1:]
    return argv, []


def join_passthrough_values(argv):
    """Rewrite `--cargo-arg VALUE` as `--cargo-arg=VALUE`.

    argparse refuses a separate value that starts with `-`, which is what
    nearly every cargo or heaptrack flag looks like.
    """
    out = []
    it = iter(argv)
    for token in it:
        if token in _PASSTHROUGH_FLAGS:
            value = next(it, None)
            if value is not None:
                token = f"{token}={value}"
        out.append(token)
    return out


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cargo heaptrack",
        description="A cargo subcommand for profiling executables with heaptrack.",
        epilog="Arguments after `--` are passed to the profiled binary.",
    )
    parser.add_argument("target", nargs="?", help="Binary to run (same as --bin)")

    build = parser.add_argument_group("build options")
    build.add_argument("--dev", action="store_true", help="Build with the dev profile")
    build.add_argument("--profile", help="Build with the specified profile")
    build.add_argument("-p", "--package", help="Package with the binary to run")
    build.add_argument("--manifest-path", help="Path to Cargo.toml")
    build.add_argument("-F", "--features", help="Build features to enable")
    build.add_argument("--no-default-features", action="store_true", help="Disable default features")
    build.add_argument(
        "-r",
        "--release",
        action="store_true",
        help="No-op. For compatibility with `cargo run --release`.",
    )
    build.add_argument(
        "--cargo-arg",
        action="append",
        default=[],
        metavar="ARG",
        help="Extra argument for the cargo build command (repeatable)",
    )

    targets = parser.add_argument_group("target selection").add_mutually_exclusive_group()
    targets.add_argument("-b", "--bin", help="Binary to run")
    targets.add_argument("--example", help="Example to run")
    targets.add_argument("--test", help="Test binary to run")
    targets.add_argument(
        "--unit-test",
        nargs="?",
        const="",
        metavar="NAME",
        help=(
            "Crate target to unit test; NAME may be omitted if the crate has only one target. "
            "Test selection can be passed as trailing arguments after `--`."
        ),
    )
    targets.add_argument("--bench", help="Benchmark to run")

    ht = parser.add_argument_group("heaptrack options")
    ht.add_argument("-o", "--output", help="heaptrack output file")
    ht.add_argument("--raw", action="store_true", help="Only record raw data, do not interpret it")
    ht.add_argument(
        "--heaptrack-arg",
        action="append",
        default=[],
        metavar="ARG",
        help="Extra argument for heaptrack, placed before the executable (repeatable)",
    )

    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def parse_args(argv) -> InvocationPlan:
    """Turn the command line into an InvocationPlan (exits with status 2 on bad flags)."""
    argv = list(argv)
    if argv and argv[0] == SUBCOMMAND_NAME:
        argv = argv[1:]
    own, trailing = split_trailing(argv)

    parser = build_parser()
    args = parser.parse_args(join_passthrough_values(own))

    target_flag = None
    target_name = None
    for flag in _TARGET_FLAGS:
        value = getattr(args, flag)
        if value is not None:
            target_flag, target_name = flag, (value or None)
    if args.target is not None:
        if target_flag is not None:
            parser.error(f"positional target '{args.target}' cannot be combined with --{target_flag.replace('_', '-')}")
        target_flag, target_name = "bin", args.target
    if args.dev and args.profile:
        parser.error("--dev and --profile are mutually exclusive")

    return InvocationPlan(
        target_flag=target_flag,
        target_name=target_name,
        package=args.package,
        dev=args.dev,
        profile=args.profile,
        manifest_path=args.manifest_path,
        features=args.features,
        no_default_features=args.no_default_features,
        cargo_args=list(args.cargo_arg),
        output=args.output,
        raw=args.raw,
        heaptrack_args=list(args.heaptrack_arg),
        trailing_args=trailing,
        quiet=args.quiet,
    )


def select_target(plan: InvocationPlan, cargo: str):
    crate_root = find_crate_root(plan.manifest_path)
    metadata = load_metadata(cargo, plan.manifest_path)
    target, announce = find_unique_target(
        metadata,
        plan.accepted_kinds(),
        crate_root,
        package=plan.package,
        target_name=plan.target_name,
    )
    plan.select_target(target["package"], target["target"], target["kind"])
    if announce:
        print(
            f"automatically selected target {target['target']} in package {target['package']} "
            "as it is the only valid target",
            file=sys.stderr,
        )
    return metadata.get("target_directory")


def lookup_target_directory(plan: InvocationPlan, cargo: str):
    """cargo's target directory, or None when metadata cannot be read."""
    try:
        return load_metadata(cargo, plan.manifest_path).get("target_directory")
    except HeaptrackError:
        return None


def run(plan: InvocationPlan, environ=None) -> int:
    status_enabled = not plan.quiet

    def say(msg):
        status(msg, status_enabled)

    cargo = cargo_executable(environ)
    heaptrack = require_tool(heaptrack_executable(environ), "heap profiler")

    target_dir = None
    if plan.needs_target_selection():
        say("Selecting target from cargo metadata")
        target_dir = select_target(plan, cargo)

    say(f"Building {plan.target_flag.replace('_', ' ')} {plan.target_name}")
    artifacts = run_build(plan, cargo, status_cb=say)
    try:
        executable = resolve_executable(plan, artifacts, target_dir=target_dir)
    except ArtifactError:
        if target_dir is not None or plan.target_flag not in ("bin", "example"):
            raise
        target_dir = lookup_target_directory(plan, cargo)
        if target_dir is None:
            raise
        # Fails again, this time naming where the binary should have been.
        executable = resolve_executable(plan, artifacts, target_dir=target_dir)
    plan.set_executable(executable)

    say(f"Profiling {plan.executable}")
    code = run_heaptrack(plan, heaptrack, status_cb=say)
    if code < 0:
        # Killed by a signal: report it the way a shell would.
        return 128 - code
    return code


def main(argv=None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    plan = parse_args(argv)
    try:
        return run(plan)
    except HeaptrackError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
