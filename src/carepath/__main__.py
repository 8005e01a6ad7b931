"""Entry point for ``python -m carepath``."""

import sys

from carepath.cli import main

if __name__ == "__main__":
    sys.exit(main())
