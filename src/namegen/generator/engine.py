"""Random name generation over a static name table.

Two entry points:
- generate(): one first/last name pair for a request, or None
- generate_batch(): up to 26 names, one attempt series per last-name letter

Neither raises on missing data. An empty candidate pool (unknown key, table
not loaded, or every candidate recently used) produces None for a single
generation and a shorter list for a batch.

Example usage:
    from namegen.generator import NameGenerator
    from namegen.table import NameTable

    generator = NameGenerator(NameTable.load(), rng=random.Random(7))
    name = generator.generate(GenerationRequest(gender="female", nationality="german"))
    batch = generator.generate_batch("male", "british", "any")
"""

import logging
import random
import string
import threading

from namegen.config import GeneratorConfig
from namegen.generator.recency import RecencyFilter
from namegen.logging import get_logger
from namegen.models.names import GeneratedName, GenerationRequest
from namegen.table import NameTable

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_lowercase


class NameGenerator:
    """Generates names from a NameTable with recency-based anti-repetition.

    The recency filter and random source are owned by the generator and can
    be injected for tests. Calls are serialised with a lock so at most one
    generation runs at a time.
    """

    def __init__(
        self,
        table: NameTable,
        recency: RecencyFilter | None = None,
        rng: random.Random | None = None,
        config: GeneratorConfig | None = None,
    ) -> None:
        self.table = table
        self.config = config or GeneratorConfig()
        self.rng = rng if rng is not None else random.Random(self.config.seed)
        if recency is None:
            recency = RecencyFilter(capacity=self.config.history_size, rng=self.rng)
        self.recency = recency
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Candidate selection (no recency mutation)
    # -------------------------------------------------------------------------

    def random_first_name(
        self,
        gender: str,
        nationality: str,
        decade: str,
        use_double_name: bool = False,
    ) -> str | None:
        """Pick a first name not in the recency set.

        With use_double_name, two distinct candidates are hyphen-joined when
        at least two remain; otherwise a single name is returned.
        """
        pool = self.table.first_names_for(gender, nationality, decade)
        available = [name for name in pool if not self.recency.contains_first(name)]
        if not available and pool and self.config.fallback_when_exhausted:
            available = list(pool)

        if not available:
            logger.debug(
                f"No first name available for {nationality}/{gender}/{decade} "
                f"(pool size {len(pool)})"
            )
            return None

        if use_double_name:
            shuffled = list(available)
            self.rng.shuffle(shuffled)
            if len(shuffled) >= 2:
                return f"{shuffled[0]}-{shuffled[1]}"

        return self.rng.choice(available)

    def random_last_name(self, nationality: str, starting_with: str | None = None) -> str | None:
        """Pick a last name not in the recency set, optionally by initial."""
        pool = self.table.last_names_for(nationality)
        if starting_with:
            letter = starting_with[0].lower()
            pool = [name for name in pool if name[:1].lower() == letter]

        available = [name for name in pool if not self.recency.contains_last(name)]
        if not available and pool and self.config.fallback_when_exhausted:
            available = list(pool)

        if not available:
            logger.debug(
                f"No last name available for {nationality} "
                f"starting with {starting_with!r}"
            )
            return None

        return self.rng.choice(available)

    # -------------------------------------------------------------------------
    # Single generation
    # -------------------------------------------------------------------------

    def generate(self, request: GenerationRequest) -> GeneratedName | None:
        """Generate one name, or None if no candidate is available.

        Recency state is only updated when a full name is returned.
        """
        with self._lock:
            name = self._generate_unlocked(request)

        session = get_logger()
        if session:
            session.log_generation(request.model_dump(), name.full_name if name else None)
        return name

    def _generate_unlocked(self, request: GenerationRequest) -> GeneratedName | None:
        first_name = self.random_first_name(
            request.gender,
            request.nationality,
            request.decade,
            use_double_name=request.use_double_name,
        )
        if first_name is None:
            return None

        starting_letter = first_name[0] if request.use_alliteration else None
        last_name = self.random_last_name(request.nationality, starting_with=starting_letter)
        if last_name is None:
            return None

        self.recency.remember(first_name, last_name)
        return GeneratedName.from_request(request, first_name, last_name)

    # -------------------------------------------------------------------------
    # Alphabetical batch
    # -------------------------------------------------------------------------

    def generate_batch(
        self,
        gender: str,
        nationality: str,
        decade: str,
        use_double_name: bool = False,
        use_alliteration: bool = False,
    ) -> list[GeneratedName]:
        """Generate up to one name per letter a-z, sorted by last name.

        Each letter gets a bounded number of attempts (fewer for rare
        letters), then one extra attempt for common letters. If fewer than
        ``batch_minimum`` names were found, missing initials get one more
        attempt each. The result is best-effort and may repeat an initial.
        """
        request = GenerationRequest(
            gender=gender,
            nationality=nationality,
            decade=decade,
            use_alliteration=use_alliteration,
            use_double_name=use_double_name,
        )
        rare = self.config.rare_letters.lower()

        with self._lock:
            # First names used in this batch only; separate from recency
            used_first_names: set[str] = set()
            names: list[GeneratedName] = []

            for letter in ALPHABET:
                max_attempts = (
                    self.config.batch_attempts_rare if letter in rare
                    else self.config.batch_attempts
                )
                found = None
                attempts = 0
                while found is None and attempts < max_attempts:
                    found = self._attempt_letter(request, letter, used_first_names)
                    attempts += 1

                if found is None and letter not in rare:
                    logger.debug(f"No name for letter {letter!r} after {attempts} attempts")
                    found = self._attempt_letter(request, letter, used_first_names)

                if found is not None:
                    names.append(found)

            names.sort(key=lambda n: n.last_name.lower())

            if len(names) < self.config.batch_minimum:
                covered = {n.last_name[:1].lower() for n in names}
                missing = [c for c in ALPHABET if c not in covered and c not in rare]
                logger.debug(f"Only {len(names)} names, repairing letters: {''.join(missing)}")
                for letter in missing:
                    found = self._attempt_letter(request, letter, used_first_names)
                    if found is not None:
                        names.append(found)

            names.sort(key=lambda n: n.last_name.lower())

        session = get_logger()
        if session:
            session.log_batch(request.model_dump(), len(names))
        return names

    def _attempt_letter(
        self,
        request: GenerationRequest,
        letter: str,
        used_first_names: set[str],
    ) -> GeneratedName | None:
        """One attempt at filling a batch letter slot."""
        first_name = self.random_first_name(
            request.gender,
            request.nationality,
            request.decade,
            use_double_name=request.use_double_name,
        )
        if first_name is None or first_name in used_first_names:
            return None

        if request.use_alliteration and not first_name.lower().startswith(letter):
            return None

        last_name = self.random_last_name(
            request.nationality,
            starting_with=letter if request.use_alliteration else None,
        )
        if last_name is None:
            return None

        self.recency.remember(first_name, last_name)
        used_first_names.add(first_name)
        return GeneratedName.from_request(request, first_name, last_name)
