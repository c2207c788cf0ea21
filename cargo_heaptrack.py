#!/usr/bin/env python3
"""Script entry point.

Keeps `python cargo_heaptrack.py [options] [-- args...]` working from a
checkout; installed copies use the `cargo-heaptrack` console script, which is
what lets cargo find us as `cargo heaptrack`.
"""

import sys

from cargo_heaptrack.cli import main


if __name__ == '__main__':
    sys.exit(main())
