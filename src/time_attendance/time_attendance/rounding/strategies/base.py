from __future__ import annotations

from abc import ABC, abstractmethod

from ...core.enums import RoundingScope


class RoundingStrategy(ABC):
    """Strategy Pattern: how a punch outside the grace window moves to a boundary.

    Implementations return the signed number of minutes to add to the punch
    (truncated to the minute), given its remainder past the previous boundary.
    """

    @abstractmethod
    def offset(self, *, remainder: int, interval: int, side: RoundingScope) -> int:
        raise NotImplementedError

    @staticmethod
    def down(remainder: int) -> int:
        return -remainder

    @staticmethod
    def up(remainder: int, interval: int) -> int:
        return interval - remainder if remainder else 0
