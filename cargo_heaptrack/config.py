import os
import shutil

from .constants import DEFAULT_CARGO, DEFAULT_HEAPTRACK
from .errors import ProfilerLaunchError


def _tool_from_env(env_var: str, default: str, environ=None) -> str:
    environ = os.environ if environ is None else environ
    value = (environ.get(env_var) or "").strip()
    return value or default


def cargo_executable(environ=None) -> str:
    """Path of the cargo binary.

    cargo exports `CARGO` when it runs a subcommand, so `cargo +nightly heaptrack`
    rebuilds with the same toolchain.
    """
    return _tool_from_env("CARGO", DEFAULT_CARGO, environ)


def heaptrack_executable(environ=None) -> str:
    return _tool_from_env("HEAPTRACK", DEFAULT_HEAPTRACK, environ)


def require_tool(program: str, purpose: str) -> str:
    """Return `program` resolved against PATH, or raise if it cannot be found."""
    found = shutil.which(program)
    if found is None:
        raise ProfilerLaunchError(
            f"could not find '{program}' ({purpose}) on the system PATH"
        )
    return found
