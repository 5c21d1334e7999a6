"""Which deals may be offered to (and assigned into) an order."""

from __future__ import annotations

from typing import Any, Optional

# Lifecycle keywords (case-insensitive substring) marking a deal as sellable
ALLOWED_DEAL_STATUS_KEYWORDS = (
    "returned back",
    "returned to center",
    "dropped retainers",
    "dropped retainer",
    "signed retainers",
    "signed retainer",
    "retainer signed",
)


def matches_allowed_status(status: Any) -> bool:
    normalized = str(status or "").strip().lower()
    if not normalized:
        return False
    return any(kw in normalized for kw in ALLOWED_DEAL_STATUS_KEYWORDS)


def assignability(assigned_attorney_id: Optional[str], status: Any) -> tuple[bool, Optional[str]]:
    """Return ``(assignable, reason)`` for a deal.

    *reason* is ``"assigned"`` or ``"status_not_eligible"`` when the deal
    cannot be assigned, ``None`` otherwise.
    """
    if assigned_attorney_id:
        return False, "assigned"
    if not matches_allowed_status(status):
        return False, "status_not_eligible"
    return True, None
