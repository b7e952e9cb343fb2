"""macharden - minimal macOS hardening with home/public network profiles."""
from __future__ import annotations

__version__ = "1.0.0"
