"""Meeting domain entities."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID, uuid4

from core.clock import utc_now

DEFAULT_DURATION_MINUTES = 60


class MeetingStatus(str, Enum):
    """Stored lifecycle status of a meeting."""

    SCHEDULED = "scheduled"
    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


PRE_START_STATUSES = frozenset({MeetingStatus.SCHEDULED, MeetingStatus.WAITING})


@dataclass
class Attendee:
    """One join/leave span of a user in a meeting."""

    user_id: UUID
    joined_at: datetime
    left_at: datetime | None = None
    duration_minutes: int | None = None

    @property
    def is_open(self) -> bool:
        return self.left_at is None


@dataclass
class Meeting:
    """A scheduled study session owned by a study group."""

    title: str
    scheduled_at: datetime
    created_by: UUID
    id: UUID = field(default_factory=uuid4)
    description: str | None = None
    duration_minutes: int = DEFAULT_DURATION_MINUTES
    status: MeetingStatus = MeetingStatus.SCHEDULED
    actual_start_time: datetime | None = None
    actual_end_time: datetime | None = None
    is_live: bool = False
    started_manually: bool = False
    room_link: str | None = None
    room_id: str | None = None
    attendees: list[Attendee] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)

    @property
    def scheduled_end(self) -> datetime:
        return self.scheduled_at + timedelta(minutes=self.duration_minutes)

    def open_attendee(self, user_id: UUID) -> Attendee | None:
        return next(
            (a for a in self.attendees if a.user_id == user_id and a.is_open),
            None,
        )


@dataclass(frozen=True)
class MeetingStatusReport:
    """Status of a meeting as derived at a given instant."""

    status: MeetingStatus
    can_join: bool
    time_status: str
    is_live: bool = False
    minutes_until_start: int | None = None
    actual_duration_minutes: int | None = None
    scheduled_start: datetime | None = None
    ended_at: datetime | None = None
