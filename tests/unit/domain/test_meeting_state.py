"""Unit tests for the meeting lifecycle."""

from datetime import datetime, timedelta
from uuid import UUID

import pytest

from core.exceptions import InvalidMeetingTransitionError
from domain.entities.meeting import MeetingStatus
from domain.entities.study_group import StudyGroup
from domain.services import attendance, meeting_state


@pytest.fixture
def start(now: datetime) -> datetime:
    """Scheduled start, one hour after the fixture clock."""
    return now + timedelta(hours=1)


@pytest.fixture
def scheduled(
    group: StudyGroup, creator_id: UUID, now: datetime, start: datetime
) -> tuple[StudyGroup, UUID]:
    updated, meeting = meeting_state.schedule_meeting(
        group,
        title="Eigenvalues",
        scheduled_at=start,
        duration_minutes=60,
        created_by=creator_id,
        now=now,
    )
    return updated, meeting.id


class TestScheduleMeeting:
    def test_appends_scheduled_meeting(self, scheduled, creator_id: UUID, start: datetime):
        group, meeting_id = scheduled

        meeting = group.find_meeting(meeting_id)
        assert meeting.status == MeetingStatus.SCHEDULED
        assert meeting.scheduled_at == start
        assert meeting.scheduled_end == start + timedelta(minutes=60)
        assert meeting.created_by == creator_id
        assert not meeting.is_live

    def test_defaults_duration(self, group: StudyGroup, creator_id: UUID, now: datetime):
        _, meeting = meeting_state.schedule_meeting(
            group, title="Quick", scheduled_at=now, created_by=creator_id, now=now
        )

        assert meeting.duration_minutes == 60


class TestDeriveStatus:
    def test_one_minute_before_start(self, scheduled, start: datetime):
        group, meeting_id = scheduled

        report = meeting_state.derive_status(
            group.find_meeting(meeting_id), start - timedelta(minutes=1)
        )

        assert report.status == MeetingStatus.WAITING
        assert report.can_join is False
        assert report.minutes_until_start == 1
        assert report.time_status == "Starts in 1 minutes"
        assert report.scheduled_start == start

    def test_thirty_minutes_in(self, scheduled, start: datetime):
        group, meeting_id = scheduled

        report = meeting_state.derive_status(
            group.find_meeting(meeting_id), start + timedelta(minutes=30)
        )

        assert report.status == MeetingStatus.ACTIVE
        assert report.can_join is True
        assert report.is_live is True
        assert report.time_status == "Meeting in progress (started at 15:00 UTC)"

    def test_window_end_is_inclusive(self, scheduled, start: datetime):
        group, meeting_id = scheduled

        report = meeting_state.derive_status(
            group.find_meeting(meeting_id), start + timedelta(minutes=60)
        )

        assert report.status == MeetingStatus.ACTIVE

    def test_after_window(self, scheduled, start: datetime):
        group, meeting_id = scheduled

        report = meeting_state.derive_status(
            group.find_meeting(meeting_id), start + timedelta(minutes=61)
        )

        assert report.status == MeetingStatus.COMPLETED
        assert report.can_join is False
        assert report.ended_at == start + timedelta(minutes=60)

    def test_manual_start_wins_before_schedule(self, scheduled, now: datetime):
        group, meeting_id = scheduled
        group = meeting_state.start_meeting(group, meeting_id, room_link="https://meet/x", now=now)

        report = meeting_state.derive_status(group.find_meeting(meeting_id), now)

        assert report.status == MeetingStatus.ACTIVE
        assert report.time_status == "Meeting started at 14:00 UTC"

    def test_manual_start_wins_after_window(self, scheduled, start: datetime):
        group, meeting_id = scheduled
        group = meeting_state.start_meeting(group, meeting_id, room_link=None, now=start)

        report = meeting_state.derive_status(
            group.find_meeting(meeting_id), start + timedelta(hours=3)
        )

        assert report.status == MeetingStatus.ACTIVE
        assert report.is_live is True

    def test_ended_reports_actual_duration(self, scheduled, start: datetime):
        group, meeting_id = scheduled
        group = meeting_state.start_meeting(group, meeting_id, room_link=None, now=start)
        group = meeting_state.end_meeting(
            group, meeting_id, now=start + timedelta(minutes=45)
        )

        report = meeting_state.derive_status(group.find_meeting(meeting_id), start)

        assert report.status == MeetingStatus.COMPLETED
        assert report.actual_duration_minutes == 45
        assert report.time_status == "Meeting ended"

    def test_cancelled(self, scheduled, start: datetime):
        group, meeting_id = scheduled
        group = meeting_state.cancel_meeting(group, meeting_id)

        report = meeting_state.derive_status(group.find_meeting(meeting_id), start)

        assert report.status == MeetingStatus.CANCELLED
        assert report.can_join is False


class TestUpdateMeetingStatuses:
    def test_before_start_is_noop(self, scheduled, now: datetime):
        group, _ = scheduled

        assert meeting_state.update_meeting_statuses(group, now) is group

    def test_activates_inside_window(self, scheduled, start: datetime):
        group, meeting_id = scheduled

        updated = meeting_state.update_meeting_statuses(
            group, start + timedelta(minutes=30)
        )

        meeting = updated.find_meeting(meeting_id)
        assert meeting.status == MeetingStatus.ACTIVE
        assert meeting.is_live
        assert meeting.actual_start_time == start

    def test_completes_after_window_and_closes_attendance(
        self, scheduled, start: datetime, user_id: UUID
    ):
        group, meeting_id = scheduled
        group = meeting_state.update_meeting_statuses(group, start)
        group = attendance.join_meeting(
            group, meeting_id, user_id, now=start + timedelta(minutes=10)
        )

        updated = meeting_state.update_meeting_statuses(
            group, start + timedelta(minutes=61)
        )

        meeting = updated.find_meeting(meeting_id)
        assert meeting.status == MeetingStatus.COMPLETED
        assert meeting.actual_end_time == start + timedelta(minutes=60)
        [attendee] = meeting.attendees
        assert attendee.left_at == start + timedelta(minutes=60)
        assert attendee.duration_minutes == 50

    def test_is_idempotent(self, scheduled, start: datetime):
        group, _ = scheduled
        later = start + timedelta(minutes=30)

        once = meeting_state.update_meeting_statuses(group, later)

        assert meeting_state.update_meeting_statuses(once, later) is once

    def test_never_ends_manual_meeting(self, scheduled, start: datetime):
        group, meeting_id = scheduled
        group = meeting_state.start_meeting(group, meeting_id, room_link=None, now=start)

        updated = meeting_state.update_meeting_statuses(
            group, start + timedelta(hours=5)
        )

        assert updated is group
        assert updated.find_meeting(meeting_id).status == MeetingStatus.ACTIVE

    def test_leaves_cancelled_alone(self, scheduled, start: datetime):
        group, meeting_id = scheduled
        group = meeting_state.cancel_meeting(group, meeting_id)

        assert meeting_state.update_meeting_statuses(group, start) is group


class TestStartMeeting:
    def test_sets_room_and_flags(self, scheduled, now: datetime):
        group, meeting_id = scheduled

        updated = meeting_state.start_meeting(
            group, meeting_id, room_link="https://meet/abc", room_id="abc", now=now
        )

        meeting = updated.find_meeting(meeting_id)
        assert meeting.status == MeetingStatus.ACTIVE
        assert meeting.started_manually
        assert meeting.actual_start_time == now
        assert meeting.room_link == "https://meet/abc"
        assert meeting.room_id == "abc"

    def test_keeps_existing_actual_start(self, scheduled, start: datetime):
        group, meeting_id = scheduled
        group = meeting_state.update_meeting_statuses(group, start + timedelta(minutes=5))

        updated = meeting_state.start_meeting(
            group, meeting_id, room_link=None, now=start + timedelta(minutes=10)
        )

        assert updated.find_meeting(meeting_id).actual_start_time == start

    def test_restart_after_end_opens_new_span(self, scheduled, start: datetime):
        group, meeting_id = scheduled
        group = meeting_state.start_meeting(group, meeting_id, room_link=None, now=start)
        group = meeting_state.end_meeting(group, meeting_id, now=start + timedelta(minutes=20))
        restart = start + timedelta(minutes=30)

        updated = meeting_state.start_meeting(group, meeting_id, room_link=None, now=restart)

        meeting = updated.find_meeting(meeting_id)
        assert meeting.actual_start_time == restart
        assert meeting.actual_end_time is None

    def test_cancelled_cannot_start(self, scheduled, now: datetime):
        group, meeting_id = scheduled
        group = meeting_state.cancel_meeting(group, meeting_id)

        with pytest.raises(InvalidMeetingTransitionError):
            meeting_state.start_meeting(group, meeting_id, room_link=None, now=now)


class TestEndMeeting:
    def test_closes_all_open_attendees(self, scheduled, start: datetime, user_id: UUID):
        group, meeting_id = scheduled
        group = meeting_state.start_meeting(group, meeting_id, room_link=None, now=start)
        group = attendance.join_meeting(group, meeting_id, user_id, now=start)
        end = start + timedelta(minutes=40)

        updated = meeting_state.end_meeting(group, meeting_id, now=end)

        meeting = updated.find_meeting(meeting_id)
        assert meeting.status == MeetingStatus.COMPLETED
        assert meeting.actual_end_time == end
        assert not meeting.is_live
        assert all(a.left_at == end for a in meeting.attendees)
        assert meeting.attendees[0].duration_minutes == 40

    def test_ending_unstarted_meeting_fills_start(self, scheduled, now: datetime):
        group, meeting_id = scheduled

        updated = meeting_state.end_meeting(group, meeting_id, now=now)

        meeting = updated.find_meeting(meeting_id)
        assert meeting.actual_start_time == now
        assert meeting.actual_end_time == now

    def test_ending_twice_is_noop(self, scheduled, start: datetime):
        group, meeting_id = scheduled
        ended = meeting_state.end_meeting(group, meeting_id, now=start)

        again = meeting_state.end_meeting(ended, meeting_id, now=start + timedelta(minutes=5))

        assert again is ended


class TestCancelMeeting:
    def test_cancels_scheduled(self, scheduled):
        group, meeting_id = scheduled

        updated = meeting_state.cancel_meeting(group, meeting_id)

        assert updated.find_meeting(meeting_id).status == MeetingStatus.CANCELLED

    def test_active_cannot_be_cancelled(self, scheduled, now: datetime):
        group, meeting_id = scheduled
        group = meeting_state.start_meeting(group, meeting_id, room_link=None, now=now)

        with pytest.raises(InvalidMeetingTransitionError):
            meeting_state.cancel_meeting(group, meeting_id)
