"""Entry point for ``python -m pollwatch``."""

import sys

from pollwatch.cli import main

if __name__ == "__main__":
    sys.exit(main())
