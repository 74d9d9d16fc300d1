"""Pydantic schemas for Meeting API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MeetingCreate(BaseModel):
    """Schema for scheduling a meeting."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    scheduled_at: datetime
    duration_minutes: int | None = Field(None, ge=1, le=1440)


class InstantMeetingCreate(BaseModel):
    """Schema for starting a meeting right away."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    duration_minutes: int | None = Field(None, ge=1, le=1440)
    room_link: str | None = Field(None, max_length=500)
    room_id: str | None = Field(None, max_length=200)


class StartMeetingRequest(BaseModel):
    """Room created by the video provider for this meeting."""

    room_link: str | None = Field(None, max_length=500)
    room_id: str | None = Field(None, max_length=200)


class AttendeeResponse(BaseModel):
    """Schema for Attendee response."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    joined_at: datetime
    left_at: datetime | None
    duration_minutes: int | None


class MeetingResponse(BaseModel):
    """Schema for Meeting response."""

    id: UUID
    title: str
    description: str | None
    scheduled_at: datetime
    duration_minutes: int
    status: str
    actual_start_time: datetime | None
    actual_end_time: datetime | None
    is_live: bool
    room_link: str | None
    attendee_count: int
    attendees: list[AttendeeResponse]
    created_by: UUID
    created_at: datetime


class MeetingDetailResponse(BaseModel):
    """Schema for single Meeting response."""

    data: MeetingResponse


class MeetingStatusResponse(BaseModel):
    """Derived status of a meeting."""

    model_config = ConfigDict(from_attributes=True)

    status: str
    can_join: bool
    time_status: str
    is_live: bool
    minutes_until_start: int | None = None
    actual_duration_minutes: int | None = None
    scheduled_start: datetime | None = None
    ended_at: datetime | None = None


class MeetingStatusData(BaseModel):
    meeting: MeetingResponse
    status: MeetingStatusResponse


class MeetingStatusDetailResponse(BaseModel):
    """Schema for meeting status response."""

    data: MeetingStatusData
