"""Study group API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_study_group_service
from api.v1.routes.meetings import build_meeting_response
from api.v1.schemas.common import ErrorResponse
from api.v1.schemas.study_group import (
    AddMemberRequest,
    ChangeRoleRequest,
    JoinByCodeRequest,
    MemberResponse,
    StudyGroupCreate,
    StudyGroupDetailResponse,
    StudyGroupListResponse,
    StudyGroupResponse,
)
from core.exceptions import PrivateGroupError
from core.rate_limit import limiter
from domain.entities.study_group import MemberRole, StudyGroup
from domain.services.membership import is_member
from domain.services.study_group_service import StudyGroupService, is_visible_to

router = APIRouter(
    prefix="/study-groups",
    tags=["study-groups"],
)

_ROLE_MAP = {
    "admin": MemberRole.ADMIN,
    "moderator": MemberRole.MODERATOR,
    "member": MemberRole.MEMBER,
}


@router.post(
    "",
    response_model=StudyGroupDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a study group",
    responses={
        201: {"description": "Study group created"},
        400: {"model": ErrorResponse, "description": "Invalid group settings"},
        503: {"model": ErrorResponse, "description": "No access code available"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_study_group(
    request: Request,
    body: StudyGroupCreate,
    user: CurrentUser,
    service: StudyGroupService = Depends(get_study_group_service),
) -> StudyGroupDetailResponse:
    """Create a study group. The caller becomes its admin."""
    group = await service.create_group(
        name=body.name,
        subject=body.subject,
        description=body.description,
        creator_id=user.id,
        is_public=body.is_public,
        max_members=body.max_members,
        tags=body.tags,
    )
    return StudyGroupDetailResponse(data=_build_group_response(group, user.id))


@router.get(
    "",
    response_model=StudyGroupListResponse,
    summary="List study groups",
    responses={200: {"description": "Public groups and groups the caller joined"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_study_groups(
    request: Request,
    user: CurrentUser,
    subject: str | None = Query(None, max_length=100),
    search: str | None = Query(None, max_length=100),
    service: StudyGroupService = Depends(get_study_group_service),
) -> StudyGroupListResponse:
    """List active groups visible to the caller."""
    groups = await service.list_groups(user.id, subject=subject, search=search)
    data = [_build_group_response(g, user.id) for g in groups]
    return StudyGroupListResponse(data=data, meta={"total": len(data)})


@router.get(
    "/my-groups",
    response_model=StudyGroupListResponse,
    summary="List the caller's study groups",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_my_study_groups(
    request: Request,
    user: CurrentUser,
    service: StudyGroupService = Depends(get_study_group_service),
) -> StudyGroupListResponse:
    groups = await service.list_user_groups(user.id)
    data = [_build_group_response(g, user.id) for g in groups]
    return StudyGroupListResponse(data=data, meta={"total": len(data)})


@router.post(
    "/join-by-code",
    response_model=StudyGroupDetailResponse,
    summary="Join a private study group",
    responses={
        200: {"description": "Joined"},
        404: {"model": ErrorResponse, "description": "Invalid access code"},
        409: {"model": ErrorResponse, "description": "Group full or already a member"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def join_by_code(
    request: Request,
    body: JoinByCodeRequest,
    user: CurrentUser,
    service: StudyGroupService = Depends(get_study_group_service),
) -> StudyGroupDetailResponse:
    """Join the group holding the given access code."""
    group = await service.join_by_code(body.access_code, user.id)
    return StudyGroupDetailResponse(data=_build_group_response(group, user.id))


@router.get(
    "/{group_id}",
    response_model=StudyGroupDetailResponse,
    summary="Get a study group",
    responses={
        200: {"description": "Study group details"},
        403: {"model": ErrorResponse, "description": "Private group"},
        404: {"model": ErrorResponse, "description": "Study group not found"},
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def get_study_group(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    service: StudyGroupService = Depends(get_study_group_service),
) -> StudyGroupDetailResponse:
    """Get a study group. Private groups are visible to members only."""
    group = await service.get_group(group_id)
    if not is_visible_to(group, user.id):
        raise PrivateGroupError(str(group_id))
    return StudyGroupDetailResponse(data=_build_group_response(group, user.id))


@router.post(
    "/{group_id}/join",
    response_model=StudyGroupDetailResponse,
    summary="Join a public study group",
    responses={
        200: {"description": "Joined"},
        403: {"model": ErrorResponse, "description": "Private group"},
        409: {"model": ErrorResponse, "description": "Group full or already a member"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def join_study_group(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    service: StudyGroupService = Depends(get_study_group_service),
) -> StudyGroupDetailResponse:
    group = await service.join_group(group_id, user.id)
    return StudyGroupDetailResponse(data=_build_group_response(group, user.id))


@router.post(
    "/{group_id}/leave",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Leave a study group",
    responses={
        204: {"description": "Left the group"},
        400: {"model": ErrorResponse, "description": "Creator cannot leave"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def leave_study_group(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    service: StudyGroupService = Depends(get_study_group_service),
) -> None:
    await service.leave_group(group_id, user.id)


@router.post(
    "/{group_id}/members",
    response_model=StudyGroupDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a member",
    responses={
        201: {"description": "Member added"},
        403: {"model": ErrorResponse, "description": "Moderator or above only"},
        409: {"model": ErrorResponse, "description": "Group full or already a member"},
    },
)
@limiter.limit("20/minute")  # type: ignore[untyped-decorator]
async def add_member(
    request: Request,
    group_id: UUID,
    body: AddMemberRequest,
    user: CurrentUser,
    service: StudyGroupService = Depends(get_study_group_service),
) -> StudyGroupDetailResponse:
    """Add a user to the group. Requires moderator or above."""
    group = await service.add_member(
        group_id,
        body.user_id,
        role=_ROLE_MAP[body.role],
        actor_id=user.id,
    )
    return StudyGroupDetailResponse(data=_build_group_response(group, user.id))


@router.delete(
    "/{group_id}/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a member",
    responses={
        204: {"description": "Member removed"},
        403: {"model": ErrorResponse, "description": "Admin only"},
    },
)
@limiter.limit("20/minute")  # type: ignore[untyped-decorator]
async def remove_member(
    request: Request,
    group_id: UUID,
    user_id: UUID,
    user: CurrentUser,
    service: StudyGroupService = Depends(get_study_group_service),
) -> None:
    """Remove a member. Admins may remove anyone but the creator."""
    await service.remove_member(group_id, user_id, actor_id=user.id)


@router.patch(
    "/{group_id}/members/{user_id}",
    response_model=StudyGroupDetailResponse,
    summary="Change a member's role",
    responses={
        200: {"description": "Role changed"},
        403: {"model": ErrorResponse, "description": "Admin only"},
        404: {"model": ErrorResponse, "description": "Member not found"},
    },
)
@limiter.limit("20/minute")  # type: ignore[untyped-decorator]
async def change_member_role(
    request: Request,
    group_id: UUID,
    user_id: UUID,
    body: ChangeRoleRequest,
    user: CurrentUser,
    service: StudyGroupService = Depends(get_study_group_service),
) -> StudyGroupDetailResponse:
    group = await service.change_member_role(
        group_id, user_id, _ROLE_MAP[body.role], actor_id=user.id
    )
    return StudyGroupDetailResponse(data=_build_group_response(group, user.id))


def _build_group_response(group: StudyGroup, viewer_id: UUID) -> StudyGroupResponse:
    """Convert domain entity to response schema."""
    return StudyGroupResponse(
        id=group.id,
        name=group.name,
        description=group.description,
        subject=group.subject,
        creator_id=group.creator_id,
        is_public=group.is_public,
        access_code=group.access_code if is_member(group, viewer_id) else None,
        max_members=group.max_members,
        member_count=group.member_count,
        members=[
            MemberResponse(user_id=m.user_id, role=m.role.value, joined_at=m.joined_at)
            for m in group.members
        ],
        meetings=[build_meeting_response(m) for m in group.meetings],
        tags=list(group.tags),
        status=group.status.value,
        version=group.version,
        created_at=group.created_at,
        updated_at=group.updated_at,
    )
