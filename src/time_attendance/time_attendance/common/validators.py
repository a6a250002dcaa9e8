from __future__ import annotations

from typing import Optional


def clean_text(value: Optional[str]) -> Optional[str]:
    """Strip free text and collapse blanks to None."""
    return (value or "").strip() or None
