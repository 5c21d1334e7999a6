"""Order criteria evaluation.

Pure-function module: NO database access.

An order's ``criteria`` column is a loosely-typed JSON document.  It is
parsed once into an ``OrderCriteria`` (unknown keys dropped, unrecognized
values collapsed to the neutral rule) and then checked against a lead's
yes/no facts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from lead_portal.domain.enums import InsuredRule, TriStateRule

# Checked in this order; the first failure wins.
TRI_STATE_KEYS = (
    "prior_attorney_involved",
    "currently_represented",
    "is_injured",
    "received_medical_treatment",
    "accident_last_12_months",
)

INSURED_ONLY_BONUS = 10
UNINSURED_OK_BONUS = 2


def bool_or_null(value: Any) -> Optional[bool]:
    """Return *value* only if it is exactly a bool, else ``None``."""
    if value is True:
        return True
    if value is False:
        return False
    return None


def _parse_rule(raw: Any, enum_cls, default):
    if raw is None:
        return default
    try:
        return enum_cls(str(raw).strip().lower())
    except ValueError:
        return default


@dataclass(frozen=True)
class OrderCriteria:
    """Typed view of an order's criteria document."""

    prior_attorney_involved: TriStateRule = TriStateRule.EITHER
    currently_represented: TriStateRule = TriStateRule.EITHER
    is_injured: TriStateRule = TriStateRule.EITHER
    received_medical_treatment: TriStateRule = TriStateRule.EITHER
    accident_last_12_months: TriStateRule = TriStateRule.EITHER
    insured: InsuredRule = InsuredRule.NONE

    @classmethod
    def from_document(cls, document: Any) -> "OrderCriteria":
        """Build criteria from the raw JSON column; anything unusable is neutral."""
        if isinstance(document, OrderCriteria):
            return document
        if not isinstance(document, Mapping):
            return cls()
        rules = {
            key: _parse_rule(document.get(key), TriStateRule, TriStateRule.EITHER)
            for key in TRI_STATE_KEYS
        }
        rules["insured"] = _parse_rule(document.get("insured"), InsuredRule, InsuredRule.NONE)
        return cls(**rules)


@dataclass
class CriteriaResult:
    eligible: bool
    reasons: list[str] = field(default_factory=list)
    score_boost: int = 0


def _tri_state_passes(rule: TriStateRule, fact: Optional[bool]) -> bool:
    if rule is TriStateRule.YES:
        return fact is True
    if rule is TriStateRule.NO:
        return fact is False
    return True


def evaluate_criteria(criteria: Any, facts: Mapping[str, Any]) -> CriteriaResult:
    """Check a candidate's facts against an order's criteria.

    Parameters
    ----------
    criteria
        Raw criteria document (dict / None / garbage) or an ``OrderCriteria``.
    facts
        Mapping holding the candidate's yes/no facts.  Missing keys and
        non-bool values count as unknown.

    Returns
    -------
    CriteriaResult
        On the first failing yes/no rule, or an unmet ``insured_only``, the
        result is ineligible with a single exclusion reason and no boost.
    """
    parsed = OrderCriteria.from_document(criteria)

    for key in TRI_STATE_KEYS:
        rule = getattr(parsed, key)
        if not _tri_state_passes(rule, bool_or_null(facts.get(key))):
            return CriteriaResult(eligible=False, reasons=[f"Excluded: {key} mismatch"])

    reasons: list[str] = []
    score_boost = 0

    if parsed.insured is InsuredRule.INSURED_ONLY:
        if bool_or_null(facts.get("insured")) is not True:
            return CriteriaResult(eligible=False, reasons=["Excluded: insured_only required"])
        score_boost += INSURED_ONLY_BONUS
        reasons.append("Match: insured_only")
    elif parsed.insured is InsuredRule.UNINSURED_OK:
        score_boost += UNINSURED_OK_BONUS
        reasons.append("Criteria: uninsured_ok")

    return CriteriaResult(eligible=True, reasons=reasons, score_boost=score_boost)
