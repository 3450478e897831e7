"""
Module execution entry point.

Allows running with: python -m dsarchive_cli
"""

import sys
from dsarchive_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
