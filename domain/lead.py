"""
Domain: Lead entity and its value objects.

A Lead is a prospective customer moving through the creator funnel. It carries
raw fields supplied by the user (stage, engagement counters, monetization) and
derived fields owned by the recalculation engine (engagement score, priority,
high-value and dormancy flags, generated reminders).

Immutability:
- Every type here is frozen. Mutations produce new instances via
  `dataclasses.replace`, so a snapshot handed to the engine can never change
  underneath it.

All timestamps must be timezone-aware UTC. Parsing strings into datetimes is the
caller's job (see repositories/lead_codec.py).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, FrozenSet, Mapping, Optional, Tuple

from .stage import FunnelStage
from .time import require_utc_timestamp


class ActivityLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ReminderType(str, Enum):
    FOLLOW_UP = "follow_up"
    PAYMENT_DUE = "payment_due"
    INACTIVITY = "inactivity"
    CUSTOM = "custom"


class OfferStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


@dataclass(frozen=True, slots=True)
class InstagramIdentity:
    username: str
    display_name: Optional[str] = None
    profile_url: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SnapchatIdentity:
    username: str
    display_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class PlatformIdentity:
    instagram: Optional[InstagramIdentity] = None
    snapchat: Optional[SnapchatIdentity] = None


@dataclass(frozen=True, slots=True)
class Note:
    note_id: str
    text: str
    created_at: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)


@dataclass(frozen=True, slots=True)
class EngagementMetrics:
    """
    Raw engagement counters plus the derived engagement score.

    reply_speed is the average number of hours the lead takes to reply.
    engagement_score is owned by the engine; any supplied value is overwritten
    on recalculation.
    """

    reply_speed: float
    activity_level: ActivityLevel
    last_activity_at: datetime
    total_interactions: int = 0
    engagement_score: int = 0

    def __post_init__(self) -> None:
        require_utc_timestamp("last_activity_at", self.last_activity_at)
        if self.reply_speed < 0:
            raise ValueError("reply_speed must be >= 0")
        if self.total_interactions < 0:
            raise ValueError("total_interactions must be >= 0")


@dataclass(frozen=True, slots=True)
class Offer:
    offer_id: str
    amount: Decimal
    currency: str
    description: str
    created_at: datetime
    status: OfferStatus = OfferStatus.PENDING

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)


@dataclass(frozen=True, slots=True)
class Payment:
    payment_id: str
    amount: Decimal
    currency: str
    method: str
    received_at: datetime
    offer_id: Optional[str] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("received_at", self.received_at)


@dataclass(frozen=True, slots=True)
class Monetization:
    """
    Offers made to a lead and payments received from them.

    total_revenue and average_offer_value are stored as supplied; the
    `with_payment` / `with_offer` transitions keep them in step with the lists.
    """

    offers: Tuple[Offer, ...] = ()
    payments: Tuple[Payment, ...] = ()
    total_revenue: Decimal = Decimal("0")
    average_offer_value: Decimal = Decimal("0")

    def with_payment(self, payment: Payment) -> "Monetization":
        """Return a new Monetization with `payment` appended and total_revenue updated."""

        return replace(
            self,
            payments=self.payments + (payment,),
            total_revenue=self.total_revenue + payment.amount,
        )

    def with_offer(self, offer: Offer) -> "Monetization":
        """Return a new Monetization with `offer` appended and average_offer_value updated."""

        offers = self.offers + (offer,)
        average = sum((o.amount for o in offers), Decimal("0")) / len(offers)
        return replace(self, offers=offers, average_offer_value=average)


@dataclass(frozen=True, slots=True)
class Reminder:
    """
    An actionable reminder attached to a lead.

    Generated reminders carry an id derived from their trigger and the lead id
    (see domain/reminders.py); manual reminders carry any unique id.
    """

    reminder_id: str
    type: ReminderType
    message: str
    due_at: datetime
    priority: Priority
    completed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("due_at", self.due_at)
        if self.completed_at is not None:
            require_utc_timestamp("completed_at", self.completed_at)

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def completed(self, completed_at: datetime) -> "Reminder":
        """Return a new Reminder marked as completed at `completed_at`."""

        require_utc_timestamp("completed_at", completed_at)
        if self.completed_at is not None:
            raise ValueError("Reminder is already completed")
        return replace(self, completed_at=completed_at)


@dataclass(frozen=True, slots=True)
class Lead:
    """
    Snapshot of a lead.

    Derived fields (engagement.engagement_score, priority, is_high_value,
    is_dormant, generated reminders) are only consistent with the raw fields
    after passing through `domain.recalculation.recalculate_lead`. Callers must
    recalculate on every create and every mutation before persisting.

    completed_reminder_ids remembers generated reminders the user has already
    completed while their trigger is still firing, so they are not regenerated.
    """

    lead_id: str
    display_name: str
    stage: FunnelStage
    engagement: EngagementMetrics
    created_at: datetime
    updated_at: datetime
    monetization: Monetization = field(default_factory=Monetization)
    platforms: PlatformIdentity = field(default_factory=PlatformIdentity)
    tags: Tuple[str, ...] = ()
    notes: Tuple[Note, ...] = ()
    reminders: Tuple[Reminder, ...] = ()
    completed_reminder_ids: FrozenSet[str] = frozenset()
    priority: Priority = Priority.MEDIUM
    is_high_value: bool = False
    is_dormant: bool = False
    last_contact_at: Optional[datetime] = None
    source: Optional[str] = None
    referred_by: Optional[str] = None
    custom_fields: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.stage, FunnelStage):
            # Accept wire values ("the_ask"); reject anything else loudly.
            object.__setattr__(self, "stage", FunnelStage(self.stage))
        require_utc_timestamp("created_at", self.created_at)
        require_utc_timestamp("updated_at", self.updated_at)
        if self.last_contact_at is not None:
            require_utc_timestamp("last_contact_at", self.last_contact_at)

    @property
    def open_reminders(self) -> Tuple[Reminder, ...]:
        return tuple(r for r in self.reminders if not r.is_completed)

    def find_reminder(self, reminder_id: str) -> Optional[Reminder]:
        for reminder in self.reminders:
            if reminder.reminder_id == reminder_id:
                return reminder
        return None
