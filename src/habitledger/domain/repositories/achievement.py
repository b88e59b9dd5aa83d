"""Achievement repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Protocol

from ...models.achievement import Achievement


class AchievementRepository(Protocol):
    def list_all(self) -> list[Achievement]:
        ...

    def list_applicable(self, habit_id: int) -> list[Achievement]:
        """Rules scoped to ``habit_id`` plus global rules."""
        ...

    def count(self) -> int:
        ...

    def bulk_create(self, achievements: Iterable[Achievement]) -> list[Achievement]:
        ...

    def mark_unlocked(self, achievement_id: int, when: datetime) -> bool:
        """Stamp ``unlocked_at`` if still absent; False if it was already set."""
        ...
