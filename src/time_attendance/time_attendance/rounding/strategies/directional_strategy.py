from __future__ import annotations

from ...core.enums import RoundingScope
from .base import RoundingStrategy


class UpStrategy(RoundingStrategy):
    def offset(self, *, remainder: int, interval: int, side: RoundingScope) -> int:
        return self.up(remainder, interval)


class DownStrategy(RoundingStrategy):
    def offset(self, *, remainder: int, interval: int, side: RoundingScope) -> int:
        return self.down(remainder)
