"""Attendance tracking for meetings."""

import math
from dataclasses import replace
from datetime import datetime
from uuid import UUID

from core.exceptions import InvalidMeetingTransitionError, MeetingNotFoundError
from domain.entities.meeting import Attendee, Meeting, MeetingStatus
from domain.entities.study_group import StudyGroup

TERMINAL_STATUSES = frozenset({MeetingStatus.COMPLETED, MeetingStatus.CANCELLED})


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from ``start`` to ``end``, halves rounded up."""
    return math.floor((end - start).total_seconds() / 60 + 0.5)


def require_meeting(group: StudyGroup, meeting_id: UUID) -> Meeting:
    meeting = group.find_meeting(meeting_id)
    if meeting is None:
        raise MeetingNotFoundError(str(meeting_id))
    return meeting


def replace_meeting(group: StudyGroup, meeting: Meeting) -> StudyGroup:
    return replace(
        group,
        meetings=[meeting if m.id == meeting.id else m for m in group.meetings],
    )


def close_attendee(attendee: Attendee, left_at: datetime) -> Attendee:
    # Never report a negative span when the end is backdated before the join
    left_at = max(left_at, attendee.joined_at)
    return replace(
        attendee,
        left_at=left_at,
        duration_minutes=minutes_between(attendee.joined_at, left_at),
    )


def close_open_attendees(meeting: Meeting, left_at: datetime) -> Meeting:
    if not any(a.is_open for a in meeting.attendees):
        return meeting
    return replace(
        meeting,
        attendees=[
            close_attendee(a, left_at) if a.is_open else a for a in meeting.attendees
        ],
    )


def join(meeting: Meeting, user_id: UUID, now: datetime) -> Meeting:
    """Open an attendance span; joining twice while open changes nothing."""
    if meeting.open_attendee(user_id) is not None:
        return meeting
    attendee = Attendee(user_id=user_id, joined_at=now)
    return replace(meeting, attendees=[*meeting.attendees, attendee])


def leave(meeting: Meeting, user_id: UUID, now: datetime) -> Meeting:
    """Close the user's open span, if any."""
    current = meeting.open_attendee(user_id)
    if current is None:
        return meeting
    return replace(
        meeting,
        attendees=[
            close_attendee(a, now) if a is current else a for a in meeting.attendees
        ],
    )


def join_meeting(
    group: StudyGroup, meeting_id: UUID, user_id: UUID, *, now: datetime
) -> StudyGroup:
    """Open a span for the user. Ended and cancelled meetings cannot be joined."""
    meeting = require_meeting(group, meeting_id)
    if meeting.status in TERMINAL_STATUSES:
        raise InvalidMeetingTransitionError(str(meeting_id), meeting.status.value, "joined")
    updated = join(meeting, user_id, now)
    if updated is meeting:
        return group
    return replace_meeting(group, updated)


def leave_meeting(
    group: StudyGroup, meeting_id: UUID, user_id: UUID, *, now: datetime
) -> StudyGroup:
    meeting = require_meeting(group, meeting_id)
    updated = leave(meeting, user_id, now)
    if updated is meeting:
        return group
    return replace_meeting(group, updated)
