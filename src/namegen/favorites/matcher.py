"""Fuzzy and phonetic search over favorites.

Finds favorites whose first or last name matches a query even when the
spelling differs ("Maier" finds "Meyer"), using:
- Exact and substring matching
- Phonetic matching (Double Metaphone)
- Similarity ratio (rapidfuzz)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from metaphone import doublemetaphone
from rapidfuzz import fuzz

if TYPE_CHECKING:
    from namegen.favorites.models import FavoritePerson


@dataclass
class MatchCandidate:
    """A favorite matching a search query."""

    person: FavoritePerson
    confidence: float
    matched_form: str  # Which name part matched
    match_type: str  # "exact", "prefix", "substring", "metaphone", "fuzzy"


def _clean(word: str) -> str:
    return re.sub(r"[^a-zA-Z]", "", word)


def _metaphone_codes(word: str) -> set[str]:
    clean_word = _clean(word)
    if len(clean_word) < 2:
        return set()
    primary, alternate = doublemetaphone(clean_word)
    return {code for code in (primary, alternate) if code}


class FavoriteMatcher:
    """Match free-text queries against favorite names.

    Matching strategy priority:
    1. Exact match of a name part -> confidence 1.0
    2. Name part starts with query -> 0.9
    3. Full name contains query -> 0.8
    4. Metaphone code overlap -> 0.75 * similarity (floor 0.5)
    5. Similarity ratio >= fuzzy_threshold -> 0.6 * similarity
    """

    def __init__(self, people: list[FavoritePerson], fuzzy_threshold: float = 0.75) -> None:
        self.people = people
        self.fuzzy_threshold = fuzzy_threshold
        # Name parts split on spaces and hyphens so double names match per component
        self._parts: list[tuple[str, FavoritePerson]] = []
        self._phonetic: dict[str, list[tuple[str, FavoritePerson]]] = {}
        self._build_indexes()

    def _build_indexes(self) -> None:
        for person in self.people:
            for part in re.split(r"[\s-]+", person.full_name):
                if not part:
                    continue
                self._parts.append((part, person))
                for code in _metaphone_codes(part):
                    self._phonetic.setdefault(code, []).append((part, person))

    def find(self, query: str, limit: int = 20) -> list[MatchCandidate]:
        """Return favorites matching the query, best first."""
        query = (query or "").strip()
        if not query:
            return []
        query_lower = query.lower()

        best: dict[str, MatchCandidate] = {}

        def offer(candidate: MatchCandidate) -> None:
            current = best.get(candidate.person.id)
            if current is None or candidate.confidence > current.confidence:
                best[candidate.person.id] = candidate

        for part, person in self._parts:
            part_lower = part.lower()
            if part_lower == query_lower:
                offer(MatchCandidate(person, 1.0, part, "exact"))
            elif part_lower.startswith(query_lower):
                offer(MatchCandidate(person, 0.9, part, "prefix"))
            else:
                similarity = fuzz.ratio(query_lower, part_lower) / 100.0
                if similarity >= self.fuzzy_threshold:
                    offer(MatchCandidate(person, 0.6 * similarity, part, "fuzzy"))

        for person in self.people:
            if query_lower in person.full_name.lower():
                offer(MatchCandidate(person, 0.8, person.full_name, "substring"))

        # Phonetic only for single-word queries
        if " " not in query:
            for code in _metaphone_codes(query):
                for part, person in self._phonetic.get(code, []):
                    similarity = fuzz.ratio(query_lower, part.lower()) / 100.0
                    offer(MatchCandidate(person, 0.75 * max(similarity, 0.5), part, "metaphone"))

        results = sorted(
            best.values(),
            key=lambda c: (-c.confidence, c.person.first_name.lower(), c.person.last_name.lower()),
        )
        return results[:limit]
