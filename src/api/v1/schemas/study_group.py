"""Pydantic schemas for Study Group API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from api.v1.schemas.meeting import MeetingResponse


class StudyGroupCreate(BaseModel):
    """Schema for creating a study group."""

    name: str = Field(..., min_length=1, max_length=100)
    subject: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    is_public: bool = True
    max_members: int = Field(50, ge=2, le=100)
    tags: list[str] = Field(default_factory=list, max_length=20)


class MemberResponse(BaseModel):
    """Schema for Study Group Member response."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    role: str
    joined_at: datetime


class StudyGroupResponse(BaseModel):
    """Schema for Study Group response.

    ``access_code`` is only filled in for members of the group.
    """

    id: UUID
    name: str
    description: str | None
    subject: str
    creator_id: UUID
    is_public: bool
    access_code: str | None = None
    max_members: int
    member_count: int
    members: list[MemberResponse]
    meetings: list[MeetingResponse]
    tags: list[str]
    status: str
    version: int
    created_at: datetime
    updated_at: datetime


class StudyGroupListResponse(BaseModel):
    """Schema for list of Study Groups response."""

    data: list[StudyGroupResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class StudyGroupDetailResponse(BaseModel):
    """Schema for single Study Group response."""

    data: StudyGroupResponse


class JoinByCodeRequest(BaseModel):
    """Schema for joining a private group."""

    access_code: str = Field(..., min_length=1, max_length=16)


class AddMemberRequest(BaseModel):
    """Schema for adding a member to a study group."""

    user_id: UUID
    role: str = Field("member", pattern="^(admin|moderator|member)$")


class ChangeRoleRequest(BaseModel):
    """Schema for changing a member's role."""

    role: str = Field(..., pattern="^(admin|moderator|member)$")
