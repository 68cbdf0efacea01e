"""Name generation engine.

This package provides:
- NameGenerator: single-name and alphabetical batch generation
- RecencyFilter: capped history of recently returned names
"""

from namegen.generator.engine import ALPHABET, NameGenerator
from namegen.generator.recency import RecencyFilter

__all__ = [
    "ALPHABET",
    "NameGenerator",
    "RecencyFilter",
]
