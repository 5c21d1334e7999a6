"""Domain enumerations for the lead portal.

All enums use the (str, Enum) pattern to ensure JSON serialization compatibility.
"""

from enum import Enum


class OrderStatus(str, Enum):
    """Lifecycle of a law firm's purchase order."""

    OPEN = "OPEN"
    FULFILLED = "FULFILLED"
    CLOSED = "CLOSED"
    EXPIRED = "EXPIRED"


class TriStateRule(str, Enum):
    """Order-side policy for a yes/no lead fact."""

    EITHER = "either"
    YES = "yes"
    NO = "no"


class InsuredRule(str, Enum):
    """Order-side policy for the lead's insured status."""

    NONE = ""
    INSURED_ONLY = "insured_only"
    UNINSURED_OK = "uninsured_ok"


class StateFilterMode(str, Enum):
    """How a jurisdiction mismatch affects a candidate.

    EXCLUDING drops the candidate (deals-for-order); SOFT_PENALTY keeps it
    and only withholds the match bonus (open-orders-for-lead).
    """

    EXCLUDING = "excluding"
    SOFT_PENALTY = "soft_penalty"
