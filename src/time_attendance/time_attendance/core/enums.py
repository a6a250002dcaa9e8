from __future__ import annotations

from enum import Enum


class EntryStatus(str, Enum):
    """Lifecycle state of a time clock entry as stored in the database."""

    ACTIVE = "ACTIVE"
    ON_BREAK = "ON_BREAK"
    COMPLETED = "COMPLETED"
    ADJUSTED = "ADJUSTED"

    @property
    def is_open(self) -> bool:
        return self in (EntryStatus.ACTIVE, EntryStatus.ON_BREAK)

    @property
    def is_closed(self) -> bool:
        return self in (EntryStatus.COMPLETED, EntryStatus.ADJUSTED)


class EntryMethod(str, Enum):
    """How a punch reached the engine."""

    WEB = "web"
    MANUAL = "manual"
    DEVICE = "device"


class RoundingScope(str, Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"
    BOTH = "both"


class RoundingDirection(str, Enum):
    NEAREST = "nearest"
    UP = "up"
    DOWN = "down"
    EMPLOYER_FAVOR = "employer_favor"


class FailureCode(str, Enum):
    """Business-rule violations returned to callers instead of raised."""

    SESSION_ALREADY_OPEN = "SESSION_ALREADY_OPEN"
    NO_ACTIVE_SESSION = "NO_ACTIVE_SESSION"
    BREAK_ALREADY_IN_PROGRESS = "BREAK_ALREADY_IN_PROGRESS"
    NO_BREAK_IN_PROGRESS = "NO_BREAK_IN_PROGRESS"
    INVALID_TIME_ORDERING = "INVALID_TIME_ORDERING"
    INVALID_RULE_CONFIGURATION = "INVALID_RULE_CONFIGURATION"
    MISSING_NOTES_FOR_MANUAL_ENTRY = "MISSING_NOTES_FOR_MANUAL_ENTRY"
    ENTRY_NOT_FOUND = "ENTRY_NOT_FOUND"
    ENTRY_NOT_ADJUSTABLE = "ENTRY_NOT_ADJUSTABLE"
