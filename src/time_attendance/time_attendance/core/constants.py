"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_REGULAR_CAP_HOURS = Decimal("8.00")
DEFAULT_BREAK_IS_PAID = False
DEFAULT_LOCK_TIMEOUT_SECONDS = 10

MINUTES_PER_DAY = 24 * 60
HOURS_QUANTUM = Decimal("0.01")
