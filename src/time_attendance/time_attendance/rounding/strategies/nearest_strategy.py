from __future__ import annotations

from ...core.enums import RoundingScope
from .base import RoundingStrategy


class NearestStrategy(RoundingStrategy):
    """Closest boundary; an exact half interval rounds up."""

    def offset(self, *, remainder: int, interval: int, side: RoundingScope) -> int:
        if remainder * 2 < interval:
            return self.down(remainder)
        return self.up(remainder, interval)
