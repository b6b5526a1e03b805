"""Package entry point for ``python -m j2b``."""

import sys

from j2b.cli import main

if __name__ == "__main__":
    sys.exit(main())
