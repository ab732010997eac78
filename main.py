"""
Headless CHIP-8 runner. Usage: python main.py ROM [--frames N] [--show_display]
"""

import sys

from chipcore.cli import main

if __name__ == "__main__":
    sys.exit(main())
