"""
Module execution entry point.

Allows running with: python -m pixelpack_cli
"""

import sys
from pixelpack_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
