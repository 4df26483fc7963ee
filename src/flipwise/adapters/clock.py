from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FixedClock:
    """Always returns the same instant. Use it wherever results must be reproducible."""
    instant: datetime

    def now(self) -> datetime:
        return self.instant
