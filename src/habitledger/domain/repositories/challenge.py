"""Challenge repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol

from ...models.challenge import Challenge


class ChallengeRepository(Protocol):
    def get_by_id(self, challenge_id: int) -> Optional[Challenge]:
        ...

    def list_all(self) -> list[Challenge]:
        ...

    def list_open(self, today: date) -> list[Challenge]:
        """Joined, active challenges whose window contains ``today``."""
        ...

    def create(self, challenge: Challenge, habit_ids: Iterable[int] = ()) -> Challenge:
        ...

    def habit_scope(self, challenge_id: int) -> list[int]:
        ...

    def credited_dates(self, challenge_id: int) -> list[date]:
        ...

    def credit(self, challenge_id: int, day: date) -> bool:
        """Add ``day`` to the credited set; False when already present."""
        ...

    def uncredit(self, challenge_id: int, day: date) -> bool:
        """Remove ``day`` from the credited set; False when absent."""
        ...
