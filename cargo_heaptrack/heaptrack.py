import subprocess

from .errors import ProfilerLaunchError


def heaptrack_command(plan, heaptrack: str = "heaptrack"):
    """`heaptrack [options] <executable> [trailing args]` for a resolved plan."""
    if plan.executable is None:
        raise ValueError("plan has no resolved executable")
    cmd = [heaptrack]
    if plan.output:
        cmd += ["--output", str(plan.output)]
    if plan.raw:
        cmd.append("--raw")
    cmd.extend(plan.heaptrack_args)
    cmd.append(plan.executable)
    cmd.extend(plan.trailing_args)
    return cmd


def run_heaptrack(plan, heaptrack: str = "heaptrack", status_cb=None) -> int:
    """Run heaptrack with inherited stdio and return its exit status unchanged."""
    cmd = heaptrack_command(plan, heaptrack)
    if status_cb is not None:
        status_cb("Running " + " ".join(cmd))
    try:
        proc = subprocess.Popen(cmd)
    except OSError as exc:
        raise ProfilerLaunchError(f"failed to execute heaptrack command: {exc}") from exc
    with proc:
        return proc.wait()
