from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import RoundingDirection
from .strategies.base import RoundingStrategy
from .strategies.directional_strategy import DownStrategy, UpStrategy
from .strategies.employer_favor_strategy import EmployerFavorStrategy
from .strategies.nearest_strategy import NearestStrategy


@dataclass
class RoundingStrategyFactory:
    """Factory Pattern: choose the strategy for a rule's direction."""

    def for_direction(self, direction: RoundingDirection) -> RoundingStrategy:
        if direction == RoundingDirection.NEAREST:
            return NearestStrategy()
        if direction == RoundingDirection.UP:
            return UpStrategy()
        if direction == RoundingDirection.DOWN:
            return DownStrategy()
        if direction == RoundingDirection.EMPLOYER_FAVOR:
            return EmployerFavorStrategy()
        raise ValueError(f"Unsupported rounding direction: {direction!r}")
