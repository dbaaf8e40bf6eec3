"""
Shared utilities for tex2png.

Common functionality used across contexts:
- Logger setup
- Timestamps
"""

from texpng.utils.timestamp import now

__all__ = ["now"]
