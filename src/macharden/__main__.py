"""Entry point for python -m macharden."""
from __future__ import annotations

import sys

from .harden import main

if __name__ == "__main__":
    sys.exit(main())
