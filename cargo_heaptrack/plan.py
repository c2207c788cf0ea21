from dataclasses import dataclass, field

from .constants import TARGET_KINDS


@dataclass
class InvocationPlan:
    """Everything one `cargo heaptrack` run needs, built from the command line.

    `target_flag` is one of the TARGET_KINDS keys ("bin", "example", "test",
    "bench", "unit_test") and `target_name` the target it names. Both may be
    empty until target selection fills them in. `executable` is set exactly
    once, after a successful build.
    """

    target_flag: str | None = None
    target_name: str | None = None
    target_kinds: list = field(default_factory=list)
    package: str | None = None

    dev: bool = False
    profile: str | None = None
    manifest_path: str | None = None
    features: str | None = None
    no_default_features: bool = False
    cargo_args: list = field(default_factory=list)

    output: str | None = None
    raw: bool = False
    heaptrack_args: list = field(default_factory=list)
    trailing_args: list = field(default_factory=list)

    quiet: bool = False
    executable: str | None = None

    def needs_target_selection(self) -> bool:
        # Unit tests always go through metadata: the build needs to know lib from bin.
        return self.target_flag in (None, "unit_test")

    def accepted_kinds(self):
        return TARGET_KINDS.get(self.target_flag or "bin", ("bin",))

    def select_target(self, package: str, name: str, kinds):
        if self.target_flag is None:
            self.target_flag = "bin"
        self.target_name = name
        self.package = package
        self.target_kinds = list(kinds)

    def cargo_profile(self) -> str:
        """The cargo profile the build step will use."""
        if self.profile:
            return self.profile
        if self.dev:
            return "test" if self.target_flag == "unit_test" else "dev"
        if self.target_flag == "bench":
            return "bench"
        return "release"

    def debuginfo_profile(self) -> str:
        """Profile section to suggest `debug = true` for when symbols are missing."""
        if self.profile:
            return self.profile
        if self.target_flag in ("bin", "example", "unit_test"):
            return "release"
        # Integration tests and benches build with the bench profile in release mode.
        return "bench"

    def set_executable(self, path: str):
        if self.executable is not None:
            raise RuntimeError("executable already resolved for this plan")
        self.executable = str(path)
