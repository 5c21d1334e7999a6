"""Three-tier lead record merge.

Precedence, lowest to highest:

    1. stored ``leads`` row
    2. latest ``daily_deal_flow`` row for the submission (overlay columns only)
    3. live overrides typed by the agent but not yet saved

Every overlay column present on the deal-flow row replaces the stored
value, NULLs included.  An override the caller explicitly sent always
wins, even when it is ``None`` (the agent cleared the field).
"""

from typing import Mapping, Optional

from lead_portal.services.record_serializer import DEAL_FLOW_OVERLAY_FIELDS


def merge_lead_record(
    stored: Optional[Mapping] = None,
    deal_flow: Optional[Mapping] = None,
    overrides: Optional[Mapping] = None,
) -> dict:
    merged = dict(stored or {})
    flow = deal_flow or {}
    merged.update({key: flow[key] for key in DEAL_FLOW_OVERLAY_FIELDS if key in flow})
    merged.update(overrides or {})
    return merged
