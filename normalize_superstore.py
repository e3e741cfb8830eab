#!/usr/bin/env python3
"""Superstore transaction table normalizer.

This is the main entry point script for the normalizer.
It wraps the package CLI for convenient execution.

Usage:
    python normalize_superstore.py --input superstore.csv --output output/normalized.csv

For full documentation and options:
    python normalize_superstore.py --help
"""

import sys
from pathlib import Path

# Add src to path for development installs
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from superstore_normalizer.cli import main

if __name__ == "__main__":
    sys.exit(main())
