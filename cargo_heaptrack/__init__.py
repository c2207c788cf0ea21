"""cargo_heaptrack package.

Main entry points:
- cargo heaptrack [options] [-- args...]
- python cargo_heaptrack.py [options] [-- args...]
- python -m cargo_heaptrack.cli [options] [-- args...]
"""

__version__ = "0.1.0"

__all__ = [
    "cli",
    "config",
    "constants",
    "errors",
    "plan",
    "metadata",
    "messages",
    "build",
    "heaptrack",
]
