"""Identifier generation: tracking numbers, master IDs, sub-tracking IDs, transaction IDs.

Random identifiers are drawn from an injected random source and stamped with
the injected clock. Each candidate is reserved under a lock before it is
handed out, and checked against the persisted set through the caller's
``is_taken`` predicate, so two concurrent callers never receive the same
value. Only the most recent reservations are remembered: by the time one
falls out of the window its value has long been persisted, and the
``is_taken`` check covers it. When the retry budget runs out the request
fails with ``Conflict``.
"""

import random
import secrets
import string
import threading
from collections import deque
from collections.abc import Callable

import structlog

from logistics.shared.clock import Clock, get_clock
from logistics.shared.errors import Conflict
from logistics.shared.settings import identifier_max_attempts

logger = structlog.get_logger(__name__)

ALPHABET = string.digits + string.ascii_uppercase  # base36, uppercase
DEFAULT_MAX_ATTEMPTS = 10
RESERVATION_WINDOW = 1024


def package_letter(ordinal: int) -> str:
    """Spreadsheet-style letters for a zero-based ordinal: A..Z, AA, AB, ..."""
    if ordinal < 0:
        raise ValueError("Package ordinal cannot be negative")
    letters = ""
    n = ordinal + 1
    while n:
        n, rem = divmod(n - 1, 26)
        letters = chr(65 + rem) + letters
    return letters


def sub_tracking_id(tracking_number: str, ordinal: int) -> str:
    return f"{tracking_number}-{package_letter(ordinal)}"


class IdentifierGenerator:
    def __init__(
        self,
        rng: random.Random | None = None,
        clock: Clock | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        reservation_window: int = RESERVATION_WINDOW,
    ):
        self._rng = rng or secrets.SystemRandom()
        self._clock = clock
        self.max_attempts = max_attempts
        self._lock = threading.Lock()
        self._reserved: set[str] = set()
        self._recent: deque[str] = deque()
        self._window = reservation_window

    @property
    def reservation_count(self) -> int:
        with self._lock:
            return len(self._reserved)

    def _reserve(self, candidate: str) -> None:
        self._reserved.add(candidate)
        self._recent.append(candidate)
        while len(self._recent) > self._window:
            self._reserved.discard(self._recent.popleft())

    def _now(self):
        return (self._clock or get_clock()).now()

    def _random(self, length: int) -> str:
        with self._lock:
            return "".join(self._rng.choice(ALPHABET) for _ in range(length))

    def _unique(self, kind: str, make: Callable[[], str], is_taken: Callable[[str], bool] | None) -> str:
        for _ in range(self.max_attempts):
            candidate = make()
            with self._lock:
                if candidate in self._reserved:
                    continue
                if is_taken is not None and is_taken(candidate):
                    continue
                self._reserve(candidate)
            return candidate

        logger.warning("Identifier retry budget exhausted", kind=kind, attempts=self.max_attempts)
        raise Conflict(f"Could not generate a unique {kind} after {self.max_attempts} attempts")

    def tracking_number(self, is_taken: Callable[[str], bool] | None = None) -> str:
        """``TRK`` + year + 8 random base36 characters."""
        return self._unique(
            "tracking number",
            lambda: f"TRK{self._now():%Y}{self._random(8)}",
            is_taken,
        )

    def master_tracking_id(self, is_taken: Callable[[str], bool] | None = None) -> str:
        """``MT`` + year + 6 random characters."""
        return self._unique(
            "master tracking id",
            lambda: f"MT{self._now():%Y}{self._random(6)}",
            is_taken,
        )

    def transaction_id(self, is_taken: Callable[[str], bool] | None = None) -> str:
        """``TXN`` + yyyymmdd + 8 random characters."""
        return self._unique(
            "transaction id",
            lambda: f"TXN{self._now():%Y%m%d}{self._random(8)}",
            is_taken,
        )

    def qr_code(self, sub_tracking: str) -> str:
        return f"QR_{self._random(12)}_{sub_tracking}"


_generator_instance: IdentifierGenerator | None = None


def get_identifier_generator() -> IdentifierGenerator:
    """Return the process-wide identifier generator (singleton)."""
    global _generator_instance
    if _generator_instance is None:
        _generator_instance = IdentifierGenerator(max_attempts=identifier_max_attempts())
    return _generator_instance


def set_identifier_generator(generator: IdentifierGenerator) -> None:
    global _generator_instance
    _generator_instance = generator


def reset_identifier_generator() -> None:
    """Reset the generator singleton (useful for testing)."""
    global _generator_instance
    _generator_instance = None
