"""Jurisdiction normalization and order state targeting.

Pure-function module: NO database access.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from lead_portal.domain.enums import StateFilterMode

STATE_MATCH_BONUS = 60


def normalize_state(raw: Any) -> str:
    """Trim and upper-case a state code; ``None`` becomes ``""``."""
    if raw is None:
        return ""
    return str(raw).strip().upper()


def normalize_state_set(targets: Any) -> set[str]:
    """Normalized, non-empty codes from an order's target list.

    Anything other than a list/tuple is treated as an empty target list.
    """
    if not isinstance(targets, (list, tuple)):
        return set()
    return {code for code in (normalize_state(t) for t in targets) if code}


@dataclass
class StateCheck:
    excluded: bool = False
    score: int = 0
    reason: Optional[str] = None


def check_state(target_set: set[str], state: str, mode: StateFilterMode) -> StateCheck:
    """Compare a normalized candidate state with an order's target set.

    Skipped (no score, no reason) when either side is empty.  On a
    mismatch, EXCLUDING drops the candidate while SOFT_PENALTY keeps it
    and records the mismatch.
    """
    if not target_set or not state:
        return StateCheck()

    if state in target_set:
        return StateCheck(score=STATE_MATCH_BONUS, reason=f"State match: {state}")

    if mode is StateFilterMode.EXCLUDING:
        return StateCheck(excluded=True)
    return StateCheck(reason=f"State mismatch: {state}")
