"""HabitLedger: local-first habit ledger and derived-state engine."""

from __future__ import annotations

from .clock import FixedClock, SystemClock
from .config import BaseConfig, DevConfig, TestConfig
from .context import AppContext, create_app_context
from .ledger import HabitLedger

__all__ = [
    "AppContext",
    "BaseConfig",
    "DevConfig",
    "FixedClock",
    "HabitLedger",
    "SystemClock",
    "TestConfig",
    "create_app_context",
]
