DEFAULT_CARGO = "cargo"
DEFAULT_HEAPTRACK = "heaptrack"

# Name cargo passes as argv[1] when running us as `cargo heaptrack`.
SUBCOMMAND_NAME = "heaptrack"

TRAILING_DELIMITER = "--"

MESSAGE_FORMAT_FLAG = "--message-format=json-render-diagnostics"

# Target kinds accepted for each selection flag.
TARGET_KINDS = {
    "bin": ("bin",),
    "example": ("example",),
    "test": ("test",),
    "bench": ("bench",),
    "unit_test": ("lib", "bin"),
}

# Built-in cargo profiles whose output directory differs from their name.
PROFILE_DIRS = {
    "dev": "debug",
    "test": "debug",
    "release": "release",
    "bench": "release",
}

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130
