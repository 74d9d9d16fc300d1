"""Meeting API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_meeting_service
from api.v1.schemas.common import ErrorResponse
from api.v1.schemas.meeting import (
    AttendeeResponse,
    InstantMeetingCreate,
    MeetingCreate,
    MeetingDetailResponse,
    MeetingResponse,
    MeetingStatusData,
    MeetingStatusDetailResponse,
    MeetingStatusResponse,
    StartMeetingRequest,
)
from core.rate_limit import limiter
from domain.entities.meeting import Meeting, MeetingStatusReport
from domain.services.meeting_service import MeetingService

router = APIRouter(
    prefix="/study-groups/{group_id}/meetings",
    tags=["meetings"],
)


@router.post(
    "",
    response_model=MeetingDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule a meeting",
    responses={
        201: {"description": "Meeting scheduled"},
        403: {"model": ErrorResponse, "description": "Creator or admin only"},
        404: {"model": ErrorResponse, "description": "Study group not found"},
        409: {"model": ErrorResponse, "description": "Concurrent update conflict"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def schedule_meeting(
    request: Request,
    group_id: UUID,
    body: MeetingCreate,
    user: CurrentUser,
    service: MeetingService = Depends(get_meeting_service),
) -> MeetingDetailResponse:
    """Schedule a meeting. Requires the group creator or an admin."""
    meeting = await service.schedule_meeting(
        group_id=group_id,
        title=body.title,
        description=body.description,
        scheduled_at=body.scheduled_at,
        duration_minutes=body.duration_minutes,
        creator_id=user.id,
        actor_id=user.id,
    )
    return MeetingDetailResponse(data=build_meeting_response(meeting))


@router.post(
    "/instant",
    response_model=MeetingDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start an instant meeting",
    responses={
        201: {"description": "Meeting created and started"},
        403: {"model": ErrorResponse, "description": "Creator or admin only"},
        404: {"model": ErrorResponse, "description": "Study group not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def start_instant_meeting(
    request: Request,
    group_id: UUID,
    body: InstantMeetingCreate,
    user: CurrentUser,
    service: MeetingService = Depends(get_meeting_service),
) -> MeetingDetailResponse:
    """Create a meeting scheduled for now and start it immediately."""
    meeting = await service.start_instant_meeting(
        group_id=group_id,
        creator_id=user.id,
        title=body.title,
        description=body.description,
        duration_minutes=body.duration_minutes,
        room_link=body.room_link,
        room_id=body.room_id,
        actor_id=user.id,
    )
    return MeetingDetailResponse(data=build_meeting_response(meeting))


@router.get(
    "/{meeting_id}/status",
    response_model=MeetingStatusDetailResponse,
    summary="Get meeting status",
    responses={
        200: {"description": "Current meeting status"},
        404: {"model": ErrorResponse, "description": "Study group or meeting not found"},
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def get_meeting_status(
    request: Request,
    group_id: UUID,
    meeting_id: UUID,
    user: CurrentUser,
    service: MeetingService = Depends(get_meeting_service),
) -> MeetingStatusDetailResponse:
    """Reconcile stored statuses, then report the derived status of one meeting."""
    await service.update_meeting_statuses(group_id)
    report = await service.get_meeting_status(group_id, meeting_id)
    meeting = await service.get_meeting(group_id, meeting_id)
    return MeetingStatusDetailResponse(
        data=MeetingStatusData(
            meeting=build_meeting_response(meeting),
            status=_build_status_response(report),
        )
    )


@router.post(
    "/{meeting_id}/start",
    response_model=MeetingDetailResponse,
    summary="Start a meeting",
    responses={
        200: {"description": "Meeting started"},
        403: {"model": ErrorResponse, "description": "Creator or admin only"},
        404: {"model": ErrorResponse, "description": "Study group or meeting not found"},
        409: {"model": ErrorResponse, "description": "Meeting was cancelled"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def start_meeting(
    request: Request,
    group_id: UUID,
    meeting_id: UUID,
    body: StartMeetingRequest,
    user: CurrentUser,
    service: MeetingService = Depends(get_meeting_service),
) -> MeetingDetailResponse:
    """Start a meeting now, whatever its schedule says."""
    meeting = await service.start_meeting(
        group_id,
        meeting_id,
        room_link=body.room_link,
        room_id=body.room_id,
        actor_id=user.id,
    )
    return MeetingDetailResponse(data=build_meeting_response(meeting))


@router.post(
    "/{meeting_id}/end",
    response_model=MeetingDetailResponse,
    summary="End a meeting",
    responses={
        200: {"description": "Meeting ended"},
        403: {"model": ErrorResponse, "description": "Group creator only"},
        404: {"model": ErrorResponse, "description": "Study group or meeting not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def end_meeting(
    request: Request,
    group_id: UUID,
    meeting_id: UUID,
    user: CurrentUser,
    service: MeetingService = Depends(get_meeting_service),
) -> MeetingDetailResponse:
    """End a meeting. Only the group creator can end meetings."""
    meeting = await service.end_meeting(group_id, meeting_id, actor_id=user.id)
    return MeetingDetailResponse(data=build_meeting_response(meeting))


@router.post(
    "/{meeting_id}/cancel",
    response_model=MeetingDetailResponse,
    summary="Cancel a meeting",
    responses={
        200: {"description": "Meeting cancelled"},
        403: {"model": ErrorResponse, "description": "Creator or admin only"},
        409: {"model": ErrorResponse, "description": "Meeting already started"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def cancel_meeting(
    request: Request,
    group_id: UUID,
    meeting_id: UUID,
    user: CurrentUser,
    service: MeetingService = Depends(get_meeting_service),
) -> MeetingDetailResponse:
    """Cancel a meeting that has not started yet."""
    meeting = await service.cancel_meeting(group_id, meeting_id, actor_id=user.id)
    return MeetingDetailResponse(data=build_meeting_response(meeting))


@router.post(
    "/{meeting_id}/join",
    response_model=MeetingDetailResponse,
    summary="Join a meeting",
    responses={
        200: {"description": "Attendance recorded"},
        403: {"model": ErrorResponse, "description": "Members only"},
        404: {"model": ErrorResponse, "description": "Study group or meeting not found"},
        409: {"model": ErrorResponse, "description": "Meeting ended or cancelled"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def join_meeting(
    request: Request,
    group_id: UUID,
    meeting_id: UUID,
    user: CurrentUser,
    service: MeetingService = Depends(get_meeting_service),
) -> MeetingDetailResponse:
    """Record the current user as attending the meeting."""
    meeting = await service.join_meeting(group_id, meeting_id, user.id, actor_id=user.id)
    return MeetingDetailResponse(data=build_meeting_response(meeting))


@router.post(
    "/{meeting_id}/leave",
    response_model=MeetingDetailResponse,
    summary="Leave a meeting",
    responses={
        200: {"description": "Attendance closed"},
        403: {"model": ErrorResponse, "description": "Members only"},
        404: {"model": ErrorResponse, "description": "Study group or meeting not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def leave_meeting(
    request: Request,
    group_id: UUID,
    meeting_id: UUID,
    user: CurrentUser,
    service: MeetingService = Depends(get_meeting_service),
) -> MeetingDetailResponse:
    """Close the current user's attendance span."""
    meeting = await service.leave_meeting(group_id, meeting_id, user.id, actor_id=user.id)
    return MeetingDetailResponse(data=build_meeting_response(meeting))


def build_meeting_response(meeting: Meeting) -> MeetingResponse:
    """Convert domain entity to response schema."""
    return MeetingResponse(
        id=meeting.id,
        title=meeting.title,
        description=meeting.description,
        scheduled_at=meeting.scheduled_at,
        duration_minutes=meeting.duration_minutes,
        status=meeting.status.value,
        actual_start_time=meeting.actual_start_time,
        actual_end_time=meeting.actual_end_time,
        is_live=meeting.is_live,
        room_link=meeting.room_link,
        attendee_count=len(meeting.attendees),
        attendees=[AttendeeResponse.model_validate(a) for a in meeting.attendees],
        created_by=meeting.created_by,
        created_at=meeting.created_at,
    )


def _build_status_response(report: MeetingStatusReport) -> MeetingStatusResponse:
    return MeetingStatusResponse(
        status=report.status.value,
        can_join=report.can_join,
        time_status=report.time_status,
        is_live=report.is_live,
        minutes_until_start=report.minutes_until_start,
        actual_duration_minutes=report.actual_duration_minutes,
        scheduled_start=report.scheduled_start,
        ended_at=report.ended_at,
    )
