from __future__ import annotations

from typing import Protocol, Sequence

from .model import RoundingRule


class RoundingRuleRepository(Protocol):
    def list_active(self, company_id: int) -> Sequence[RoundingRule]:
        """Active rules of a company, validated on load.

        Raises InvalidRuleConfiguration when a stored rule is malformed.
        """

        raise NotImplementedError
