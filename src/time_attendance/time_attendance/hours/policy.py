from __future__ import annotations

from typing import Optional, Protocol

from .model import ClockPolicy


class ClockPolicyRepository(Protocol):
    def get_for_company(self, company_id: int) -> Optional[ClockPolicy]:
        raise NotImplementedError


class ClockPolicyResolver:
    """Company policy with a settings-level fallback for companies without a row."""

    def __init__(self, policies: Optional[ClockPolicyRepository] = None, *, default: Optional[ClockPolicy] = None):
        self._policies = policies
        self._default = default or ClockPolicy()

    @property
    def default(self) -> ClockPolicy:
        return self._default

    def for_company(self, company_id: int) -> ClockPolicy:
        if self._policies is not None:
            policy = self._policies.get_for_company(company_id)
            if policy is not None:
                return policy
        return self._default
