"""
Iwry Review – Scheduler configuration
======================================
Tunable constants for the review scheduler. Defaults can be overridden
through ``IWRY_*`` environment variables via :meth:`SchedulerConfig.from_env`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Tuple

# Consecutive correct answers needed before an item counts as mastered.
MASTERY_THRESHOLD = 5

# Days until the next review, indexed by (times_practiced - 1), clamped to the last entry.
REVIEW_SCHEDULE: Tuple[int, ...] = (1, 3, 7, 14, 30)

FAILURE_INTERVAL_DAYS = 1

# Horizon used by the manual "mark as mastered" override.
MAINTENANCE_INTERVAL_DAYS = 90

ENV_PREFIX = "IWRY_"


@dataclass(frozen=True)
class SchedulerConfig:
    mastery_threshold: int = MASTERY_THRESHOLD
    schedule: Tuple[int, ...] = REVIEW_SCHEDULE
    failure_interval_days: int = FAILURE_INTERVAL_DAYS
    maintenance_interval_days: int = MAINTENANCE_INTERVAL_DAYS

    def __post_init__(self) -> None:
        # Accept any sequence for the schedule but store it immutably
        object.__setattr__(self, "schedule", tuple(self.schedule))

        if self.mastery_threshold < 1:
            raise ValueError(f"mastery_threshold must be >= 1, got {self.mastery_threshold}")
        if not self.schedule:
            raise ValueError("schedule must contain at least one interval")
        if any(days < 1 for days in self.schedule):
            raise ValueError(f"schedule intervals must be >= 1 day, got {self.schedule}")
        if any(b < a for a, b in zip(self.schedule, self.schedule[1:])):
            raise ValueError(f"schedule must be non-decreasing, got {self.schedule}")
        if self.failure_interval_days < 1:
            raise ValueError(
                f"failure_interval_days must be >= 1, got {self.failure_interval_days}"
            )
        if self.maintenance_interval_days < 1:
            raise ValueError(
                f"maintenance_interval_days must be >= 1, got {self.maintenance_interval_days}"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SchedulerConfig":
        """Build a config from ``IWRY_*`` variables, falling back to defaults.

        Recognised variables: ``IWRY_MASTERY_THRESHOLD``,
        ``IWRY_REVIEW_SCHEDULE`` (comma separated days, e.g. ``1,3,7``),
        ``IWRY_FAILURE_INTERVAL_DAYS`` and ``IWRY_MAINTENANCE_INTERVAL_DAYS``.
        """
        env = os.environ if environ is None else environ
        kwargs = {}

        for field_name in ("mastery_threshold", "failure_interval_days", "maintenance_interval_days"):
            raw = env.get(ENV_PREFIX + field_name.upper())
            if raw is not None and raw.strip():
                kwargs[field_name] = _parse_int(field_name, raw)

        raw_schedule = env.get(ENV_PREFIX + "REVIEW_SCHEDULE")
        if raw_schedule is not None and raw_schedule.strip():
            kwargs["schedule"] = tuple(
                _parse_int("schedule", part) for part in raw_schedule.split(",") if part.strip()
            )

        return cls(**kwargs)


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


DEFAULT_CONFIG = SchedulerConfig()
