"""
Domain: Funnel stages.

A lead moves through 16 ordered stages, from the first Instagram follow through
payment and retention. The order is advisory: it drives board column order and
the stage weight used in scoring, but no transition graph is enforced. Any
stage may be assigned directly.

The stage-weight table is a fixed design constant. It must cover every stage;
this is checked when the module is imported so a newly added stage without a
weight fails loudly instead of silently scoring zero.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple


class FunnelStage(str, Enum):
    INSTAGRAM_FOLLOWED = "instagram_followed"
    INSTAGRAM_FOLLOWED_BACK = "instagram_followed_back"
    INSTAGRAM_DM_SENT = "instagram_dm_sent"
    ENGAGED_IN_DM_CONVERSATION = "engaged_in_dm_conversation"
    ASKED_FOR_THE_SNAP = "asked_for_the_snap"
    SNAPCHAT_ADDED = "snapchat_added"
    SNAPCHAT_ADDED_BACK = "snapchat_added_back"
    INITIAL_SNAP_SENT_RECEIVED = "initial_snap_sent_received"
    SNAPCHAT_CONVERSATION = "snapchat_conversation"
    HEATED_SNAPCHAT_CONVERSATION = "heated_snapchat_conversation"
    THE_ASK = "the_ask"
    ASK_DELIVERED = "ask_delivered"
    PAID = "paid"
    RETURNING_CUSTOMER = "returning_customer"
    SATISFIED_CUSTOMER = "satisfied_customer"
    DORMANT = "dormant"


# Board column order (enum definition order).
FUNNEL_ORDER: Tuple[FunnelStage, ...] = tuple(FunnelStage)

STAGE_LABELS: Mapping[FunnelStage, str] = MappingProxyType({
    FunnelStage.INSTAGRAM_FOLLOWED: "Instagram Followed",
    FunnelStage.INSTAGRAM_FOLLOWED_BACK: "Instagram Followed Back",
    FunnelStage.INSTAGRAM_DM_SENT: "Instagram DM Sent",
    FunnelStage.ENGAGED_IN_DM_CONVERSATION: "Engaged In DM Conversation",
    FunnelStage.ASKED_FOR_THE_SNAP: "Asked for the Snap",
    FunnelStage.SNAPCHAT_ADDED: "Snapchat Added",
    FunnelStage.SNAPCHAT_ADDED_BACK: "Snapchat Added Back",
    FunnelStage.INITIAL_SNAP_SENT_RECEIVED: "Initial Snap Sent/Received",
    FunnelStage.SNAPCHAT_CONVERSATION: "Snapchat Conversation",
    FunnelStage.HEATED_SNAPCHAT_CONVERSATION: "Heated Snapchat Conversation",
    FunnelStage.THE_ASK: "The Ask",
    FunnelStage.ASK_DELIVERED: "Ask Delivered",
    FunnelStage.PAID: "Paid",
    FunnelStage.RETURNING_CUSTOMER: "Returning Customer",
    FunnelStage.SATISFIED_CUSTOMER: "Satisfied Customer",
    FunnelStage.DORMANT: "Dormant",
})

STAGE_WEIGHTS: Mapping[FunnelStage, int] = MappingProxyType({
    # Early Instagram stages
    FunnelStage.INSTAGRAM_FOLLOWED: 0,
    FunnelStage.INSTAGRAM_FOLLOWED_BACK: 3,
    FunnelStage.INSTAGRAM_DM_SENT: 6,
    FunnelStage.ENGAGED_IN_DM_CONVERSATION: 10,
    # Platform transition
    FunnelStage.ASKED_FOR_THE_SNAP: 12,
    FunnelStage.SNAPCHAT_ADDED: 15,
    FunnelStage.SNAPCHAT_ADDED_BACK: 18,
    FunnelStage.INITIAL_SNAP_SENT_RECEIVED: 20,
    # Active Snapchat engagement
    FunnelStage.SNAPCHAT_CONVERSATION: 22,
    FunnelStage.HEATED_SNAPCHAT_CONVERSATION: 28,
    # Monetization
    FunnelStage.THE_ASK: 30,
    FunnelStage.ASK_DELIVERED: 32,
    FunnelStage.PAID: 35,
    # Post-purchase
    FunnelStage.RETURNING_CUSTOMER: 30,
    FunnelStage.SATISFIED_CUSTOMER: 20,
    # Inactive
    FunnelStage.DORMANT: -25,
})

_missing = set(FunnelStage) - set(STAGE_WEIGHTS)
if _missing:
    raise RuntimeError(f"STAGE_WEIGHTS has no weight for: {sorted(s.value for s in _missing)}")
_missing = set(FunnelStage) - set(STAGE_LABELS)
if _missing:
    raise RuntimeError(f"STAGE_LABELS has no label for: {sorted(s.value for s in _missing)}")
del _missing


def stage_weight(stage: FunnelStage) -> int:
    """
    Scoring weight for a funnel stage.

    Raises ValueError for anything that is not a FunnelStage. Plain strings are
    accepted only if they are a valid stage value.
    """

    resolved = FunnelStage(stage)
    return STAGE_WEIGHTS[resolved]


def parse_stage(value: str) -> FunnelStage:
    """Resolve a wire value (e.g. "the_ask") or member name (e.g. "THE_ASK") to a FunnelStage."""

    try:
        return FunnelStage(value)
    except ValueError:
        pass
    try:
        return FunnelStage[value]
    except KeyError:
        raise ValueError(f"Unknown funnel stage: {value!r}") from None
