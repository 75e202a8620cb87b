"""Monotonic deadlines shared by the pipeline stages.

A stage never gets more time than its caller has left: ``child(budget)``
returns the earlier of ``now + budget`` and the parent's own deadline.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Deadline:
    expires_at: float  # time.monotonic() reference

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(time.monotonic() + seconds)

    def remaining(self) -> float:
        return max(self.expires_at - time.monotonic(), 0.0)

    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at

    def child(self, budget: float) -> "Deadline":
        return Deadline(min(time.monotonic() + budget, self.expires_at))


def stage_deadline(budget: float, parent: Optional[Deadline] = None) -> Deadline:
    if parent is None:
        return Deadline.after(budget)
    return parent.child(budget)
