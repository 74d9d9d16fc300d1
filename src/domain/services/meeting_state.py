"""Meeting lifecycle: scheduling, derived status, reconciliation and manual transitions.

Status is read two ways. ``derive_status`` computes it from the clock and
the actual start/end times without touching the aggregate.
``update_meeting_statuses`` persists the clock-driven transitions onto the
stored ``status`` field; it only runs when a caller asks for it (a status
read or the periodic sweep).

Actual start/end times set by a person always win over the scheduled
window: a manually started meeting stays active until it is ended.
"""

from dataclasses import replace
from datetime import datetime
from uuid import UUID, uuid4

from core.clock import ensure_utc
from core.exceptions import InvalidMeetingTransitionError
from domain.entities.meeting import (
    DEFAULT_DURATION_MINUTES,
    PRE_START_STATUSES,
    Meeting,
    MeetingStatus,
    MeetingStatusReport,
)
from domain.entities.study_group import StudyGroup
from domain.services.attendance import (
    close_open_attendees,
    minutes_between,
    replace_meeting,
    require_meeting,
)


def _clock_label(value: datetime) -> str:
    return value.strftime("%H:%M UTC")


def schedule_meeting(
    group: StudyGroup,
    *,
    title: str,
    scheduled_at: datetime,
    created_by: UUID,
    description: str | None = None,
    duration_minutes: int | None = None,
    meeting_id: UUID | None = None,
    now: datetime,
) -> tuple[StudyGroup, Meeting]:
    """Append a new meeting in ``scheduled`` state."""
    meeting = Meeting(
        id=meeting_id or uuid4(),
        title=title,
        description=description,
        scheduled_at=ensure_utc(scheduled_at),
        duration_minutes=duration_minutes or DEFAULT_DURATION_MINUTES,
        created_by=created_by,
        created_at=now,
    )
    return replace(group, meetings=[*group.meetings, meeting]), meeting


def derive_status(meeting: Meeting, now: datetime) -> MeetingStatusReport:
    """Compute the status of a meeting at ``now``."""
    if meeting.status == MeetingStatus.CANCELLED:
        return MeetingStatusReport(
            status=MeetingStatus.CANCELLED,
            can_join=False,
            time_status="Meeting cancelled",
        )

    start, end = meeting.actual_start_time, meeting.actual_end_time
    if start is not None and end is not None:
        return MeetingStatusReport(
            status=MeetingStatus.COMPLETED,
            can_join=False,
            time_status="Meeting ended",
            actual_duration_minutes=minutes_between(start, end),
            ended_at=end,
        )
    if start is not None:
        return MeetingStatusReport(
            status=MeetingStatus.ACTIVE,
            can_join=True,
            time_status=f"Meeting started at {_clock_label(start)}",
            is_live=True,
        )

    scheduled_start = meeting.scheduled_at
    scheduled_end = meeting.scheduled_end
    if now < scheduled_start:
        minutes = minutes_between(now, scheduled_start)
        return MeetingStatusReport(
            status=MeetingStatus.WAITING,
            can_join=False,
            time_status=f"Starts in {minutes} minutes",
            minutes_until_start=minutes,
            scheduled_start=scheduled_start,
        )
    if now <= scheduled_end:
        return MeetingStatusReport(
            status=MeetingStatus.ACTIVE,
            can_join=True,
            time_status=(
                f"Meeting in progress (started at {_clock_label(scheduled_start)})"
            ),
            is_live=True,
            scheduled_start=scheduled_start,
        )
    return MeetingStatusReport(
        status=MeetingStatus.COMPLETED,
        can_join=False,
        time_status="Meeting ended",
        ended_at=scheduled_end,
    )


def reconcile_meeting(meeting: Meeting, now: datetime) -> Meeting:
    """Apply clock-driven transitions to one meeting's stored status.

    Returns the same object when nothing changes.
    """
    scheduled_start = meeting.scheduled_at
    scheduled_end = meeting.scheduled_end

    if meeting.status in PRE_START_STATUSES and scheduled_start <= now <= scheduled_end:
        meeting = replace(
            meeting,
            status=MeetingStatus.ACTIVE,
            is_live=True,
            actual_start_time=meeting.actual_start_time or scheduled_start,
        )

    if (
        meeting.status == MeetingStatus.ACTIVE
        and not meeting.started_manually
        and meeting.actual_end_time is None
        and now > scheduled_end
    ):
        meeting = close_open_attendees(meeting, scheduled_end)
        meeting = replace(
            meeting,
            status=MeetingStatus.COMPLETED,
            is_live=False,
            actual_end_time=scheduled_end,
        )

    return meeting


def update_meeting_statuses(group: StudyGroup, now: datetime) -> StudyGroup:
    """Persistable sweep over every meeting of the group. Idempotent."""
    changed = False
    meetings = []
    for meeting in group.meetings:
        reconciled = reconcile_meeting(meeting, now)
        changed = changed or reconciled is not meeting
        meetings.append(reconciled)
    if not changed:
        return group
    return replace(group, meetings=meetings)


def start_meeting(
    group: StudyGroup,
    meeting_id: UUID,
    *,
    room_link: str | None,
    room_id: str | None = None,
    now: datetime,
) -> StudyGroup:
    """Start a meeting by hand, regardless of its schedule."""
    meeting = require_meeting(group, meeting_id)
    if meeting.status == MeetingStatus.CANCELLED:
        raise InvalidMeetingTransitionError(
            str(meeting_id), meeting.status.value, MeetingStatus.ACTIVE.value
        )

    # A restart after an end opens a fresh span
    restarting = meeting.actual_end_time is not None
    actual_start = meeting.actual_start_time
    if restarting or actual_start is None:
        actual_start = now

    started = replace(
        meeting,
        status=MeetingStatus.ACTIVE,
        is_live=True,
        started_manually=True,
        actual_start_time=actual_start,
        actual_end_time=None,
        room_link=room_link or meeting.room_link,
        room_id=room_id or meeting.room_id,
    )
    return replace_meeting(group, started)


def end_meeting(group: StudyGroup, meeting_id: UUID, *, now: datetime) -> StudyGroup:
    """End a meeting by hand and close every open attendance span."""
    meeting = require_meeting(group, meeting_id)
    if meeting.status == MeetingStatus.CANCELLED:
        raise InvalidMeetingTransitionError(
            str(meeting_id), meeting.status.value, MeetingStatus.COMPLETED.value
        )

    ended = close_open_attendees(meeting, now)
    if meeting.status == MeetingStatus.COMPLETED and meeting.actual_end_time is not None:
        if ended is meeting:
            return group
        return replace_meeting(group, ended)

    ended = replace(
        ended,
        status=MeetingStatus.COMPLETED,
        is_live=False,
        actual_start_time=meeting.actual_start_time or min(meeting.scheduled_at, now),
        actual_end_time=now,
    )
    return replace_meeting(group, ended)


def cancel_meeting(group: StudyGroup, meeting_id: UUID) -> StudyGroup:
    meeting = require_meeting(group, meeting_id)
    if meeting.status not in PRE_START_STATUSES:
        raise InvalidMeetingTransitionError(
            str(meeting_id), meeting.status.value, MeetingStatus.CANCELLED.value
        )
    cancelled = replace(meeting, status=MeetingStatus.CANCELLED, is_live=False)
    return replace_meeting(group, cancelled)
