from .constants import EXIT_FAILURE


class HeaptrackError(Exception):
    """Base class for every failure the launcher reports to the user."""

    exit_code = EXIT_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class MetadataError(HeaptrackError):
    pass


class TargetSelectionError(HeaptrackError):
    pass


class BuildError(HeaptrackError):
    """cargo exited non-zero. Carries cargo's own exit code."""

    def __init__(self, returncode: int):
        # Signal deaths show up as negative return codes.
        code = returncode if returncode > 0 else EXIT_FAILURE
        super().__init__(f"cargo build failed (exit status {returncode})", exit_code=code)


class ArtifactError(HeaptrackError):
    pass


class ProfilerLaunchError(HeaptrackError):
    pass
