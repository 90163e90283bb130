#!/usr/bin/env python3
"""
Vogue Server Script.

Runs the server from a source checkout without installing it.
Requires Python 3.11+.

Usage:
    python scripts/run_vogue.py -p 8001 ./myweb
"""

import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from api.server import main


if __name__ == "__main__":
    sys.exit(main())
