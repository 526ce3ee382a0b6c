#!/usr/bin/env python3
"""
Script to build a PowerPoint deck from the Config and Slides worksheets.
This is a thin wrapper around the sheetdeck package.
"""

import sys
from sheetdeck.cli import main

if __name__ == '__main__':
    sys.exit(main())
