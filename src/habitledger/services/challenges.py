"""Challenge credit bookkeeping and progress."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from ..clock import Clock, SystemClock
from ..domain.repositories import ChallengeRepository
from ..models.challenge import Challenge

logger = logging.getLogger("habitledger.challenges")


@dataclass(frozen=True)
class ChallengeProgress:
    challenge_id: Optional[int]
    completed_days: int
    target_days: int
    progress_percent: int


def build_challenge(
    *,
    name: str,
    description: str,
    emoji: str,
    target_days: int,
    start: date,
) -> Challenge:
    """New challenge starting ``start`` and ending ``target_days`` later, joined."""

    if target_days < 1:
        raise ValueError("A challenge needs at least one target day")
    if not name.strip():
        raise ValueError("Challenge name is required")
    try:
        end = start + timedelta(days=target_days)
    except OverflowError as exc:
        raise ValueError(f"A {target_days}-day challenge ends past the last representable date") from exc
    return Challenge(
        name=name.strip(),
        description=description,
        emoji=emoji,
        start_date=start,
        end_date=end,
        target_days=target_days,
        is_active=True,
        participants=1,
        is_joined=True,
    )


def is_open(challenge: Challenge, today: date) -> bool:
    """True while the challenge is active and ``today`` is inside its window."""

    return challenge.is_active and challenge.start_date <= today <= challenge.end_date


def applies_to(scope: Sequence[int], habit_id: int) -> bool:
    """An empty scope means the challenge counts every habit."""

    return not scope or habit_id in scope


def challenge_progress(challenge: Challenge, credited: Iterable[date]) -> ChallengeProgress:
    """Distinct credited days inside the challenge window, percent clamped to 0-100."""

    days = {d for d in credited if challenge.start_date <= d <= challenge.end_date}
    count = len(days)
    percent = int(count * 100 / max(1, challenge.target_days) + 0.5)
    return ChallengeProgress(
        challenge_id=challenge.id,
        completed_days=count,
        target_days=challenge.target_days,
        progress_percent=min(100, max(0, percent)),
    )


class ChallengeTracker:
    """Keeps each open challenge's credited-date set in step with toggles.

    Membership in the set is the only progress signal, so adding a date
    that is already there, or removing one that is not, changes nothing.
    """

    def __init__(self, challenge_repo: ChallengeRepository, clock: Clock | None = None):
        self.challenge_repo = challenge_repo
        self.clock = clock or SystemClock()

    def apply_toggle(self, habit_id: int, completed: bool, day: date) -> list[Challenge]:
        """Credit or uncredit ``day`` on every open challenge that covers the habit.

        Returns the challenges whose credited set actually changed.
        """
        changed: list[Challenge] = []
        for challenge in self.challenge_repo.list_open(self.clock.today()):
            if challenge.id is None:
                continue
            if not applies_to(self.challenge_repo.habit_scope(challenge.id), habit_id):
                continue
            if completed:
                updated = self.challenge_repo.credit(challenge.id, day)
            else:
                updated = self.challenge_repo.uncredit(challenge.id, day)
            if updated:
                changed.append(challenge)
                logger.debug(
                    "Challenge credit %s",
                    "added" if completed else "removed",
                    extra={"challenge_id": challenge.id, "habit_id": habit_id, "date": day.isoformat()},
                )
        return changed

    def progress(self, challenge: Challenge) -> ChallengeProgress:
        if challenge.id is None:
            return challenge_progress(challenge, ())
        return challenge_progress(challenge, self.challenge_repo.credited_dates(challenge.id))


__all__ = [
    "ChallengeProgress",
    "ChallengeTracker",
    "applies_to",
    "build_challenge",
    "challenge_progress",
    "is_open",
]
