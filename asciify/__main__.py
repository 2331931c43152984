"""
Entry point for running asciify as a module.

Usage:
    python -m asciify -i <file or mask> [options]
"""

import sys

from asciify.cli import main

if __name__ == "__main__":
    sys.exit(main())
