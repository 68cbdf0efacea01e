"""Favorites collection for generated names.

This module provides:
- FavoritesManager: JSON-backed CRUD for favorites and their detail records
- FavoriteMatcher: fuzzy and phonetic name search
- Pydantic models for favorites, details and statistics
"""

from namegen.favorites.manager import FavoritesManager
from namegen.favorites.matcher import FavoriteMatcher, MatchCandidate
from namegen.favorites.models import FavoritePerson, FavoritesStats, PersonDetails

__all__ = [
    "FavoritesManager",
    "FavoriteMatcher",
    "MatchCandidate",
    "FavoritePerson",
    "FavoritesStats",
    "PersonDetails",
]
