"""Goal repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.goal import Goal


class GoalRepository(Protocol):
    def get_by_id(self, goal_id: int) -> Optional[Goal]:
        ...

    def list_all(self) -> list[Goal]:
        ...

    def list_for_habit(self, habit_id: int) -> list[Goal]:
        ...

    def create(self, goal: Goal) -> Goal:
        ...

    def set_achieved(self, goal_id: int, achieved: bool) -> None:
        ...

    def delete(self, goal_id: int) -> None:
        ...
