class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidRuleConfiguration(ValidationError):
    """Raised when a rounding rule is malformed (checked when rules are loaded)."""


class SessionConflict(DomainError):
    """Raised by a store when a second open session would be written for an employee."""
