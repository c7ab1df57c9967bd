"""Command-line Entry Point - Root Module.

Allows running the monitor from a checkout with `python main.py`.
It imports from the quakewatch package.
"""

import sys

from quakewatch.main import main

__all__ = [
    "main",
]


if __name__ == "__main__":
    sys.exit(main())
