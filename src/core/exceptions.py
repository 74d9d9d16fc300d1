"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"

    # Authorization errors (403)
    NOT_A_GROUP_MEMBER = "NOT_A_GROUP_MEMBER"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    PRIVATE_GROUP = "PRIVATE_GROUP"

    # Not found errors (404)
    GROUP_NOT_FOUND = "GROUP_NOT_FOUND"
    MEETING_NOT_FOUND = "MEETING_NOT_FOUND"
    MESSAGE_NOT_FOUND = "MESSAGE_NOT_FOUND"
    GROUP_MEMBER_NOT_FOUND = "GROUP_MEMBER_NOT_FOUND"
    INVALID_ACCESS_CODE = "INVALID_ACCESS_CODE"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_MESSAGE = "INVALID_MESSAGE"
    INVALID_GROUP_SETTINGS = "INVALID_GROUP_SETTINGS"
    CREATOR_CANNOT_LEAVE = "CREATOR_CANNOT_LEAVE"

    # Conflict errors (409)
    GROUP_FULL = "GROUP_FULL"
    ALREADY_A_GROUP_MEMBER = "ALREADY_A_GROUP_MEMBER"
    INVALID_MEETING_TRANSITION = "INVALID_MEETING_TRANSITION"
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500/503)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    CODE_GENERATION_EXHAUSTED = "CODE_GENERATION_EXHAUSTED"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class GroupNotFoundError(AppException):
    """Study group not found."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.GROUP_NOT_FOUND,
            message=f"Study group not found: {group_id}",
            status_code=404,
            details={"group_id": group_id},
        )


class MeetingNotFoundError(AppException):
    """Meeting not found inside the study group."""

    def __init__(self, meeting_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.MEETING_NOT_FOUND,
            message=f"Meeting not found: {meeting_id}",
            status_code=404,
            details={"meeting_id": meeting_id},
        )


class MessageNotFoundError(AppException):
    """Chat message not found inside the study group."""

    def __init__(self, message_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.MESSAGE_NOT_FOUND,
            message=f"Message not found: {message_id}",
            status_code=404,
            details={"message_id": message_id},
        )


class GroupMemberNotFoundError(AppException):
    """User is not a member of the study group."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.GROUP_MEMBER_NOT_FOUND,
            message="User is not a member of this study group",
            status_code=404,
            details={"user_id": user_id},
        )


class InvalidAccessCodeError(AppException):
    """No study group matches the access code."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_ACCESS_CODE,
            message="Study group not found with the provided access code",
            status_code=404,
        )


class NotAGroupMemberError(AppException):
    """The acting user must be a member of the study group."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.NOT_A_GROUP_MEMBER,
            message="You must be a member of this study group",
            status_code=403,
            details={"group_id": group_id},
        )


class InsufficientPermissionsError(AppException):
    """User does not have sufficient permissions."""

    def __init__(self, required_role: str = "admin") -> None:
        super().__init__(
            error_code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            message=f"Insufficient permissions. Required role: {required_role}",
            status_code=403,
            details={"required_role": required_role},
        )


class PrivateGroupError(AppException):
    """Private groups can only be joined with their access code."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.PRIVATE_GROUP,
            message="This is a private group. You need an access code to join.",
            status_code=403,
            details={"group_id": group_id},
        )


class GroupFullError(AppException):
    """The study group has reached its member capacity."""

    def __init__(self, max_members: int) -> None:
        super().__init__(
            error_code=ErrorCode.GROUP_FULL,
            message="Study group is full",
            status_code=409,
            details={"max_members": max_members},
        )


class AlreadyAGroupMemberError(AppException):
    """User is already a member of the study group."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.ALREADY_A_GROUP_MEMBER,
            message="User is already a member of this study group",
            status_code=409,
            details={"user_id": user_id},
        )


class CreatorCannotLeaveError(AppException):
    """The creator of a group cannot leave it."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.CREATOR_CANNOT_LEAVE,
            message="Group creator cannot leave. Transfer ownership or delete the group.",
            status_code=400,
        )


class InvalidGroupSettingsError(AppException):
    """Group settings are outside the allowed bounds."""

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_GROUP_SETTINGS,
            message=message,
            status_code=400,
            details=details,
        )


class InvalidMessageError(AppException):
    """Chat message failed validation."""

    def __init__(self, message: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_MESSAGE,
            message=message,
            status_code=400,
        )


class InvalidMeetingTransitionError(AppException):
    """The meeting cannot move to the requested status."""

    def __init__(self, meeting_id: str, current: str, target: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_MEETING_TRANSITION,
            message=f"Cannot move meeting from {current} to {target}",
            status_code=409,
            details={"meeting_id": meeting_id, "current": current, "target": target},
        )


class CodeGenerationExhaustedError(AppException):
    """Every generated access code collided with an existing one."""

    def __init__(self, attempts: int) -> None:
        super().__init__(
            error_code=ErrorCode.CODE_GENERATION_EXHAUSTED,
            message="Could not generate a unique access code",
            status_code=503,
            details={"attempts": attempts},
        )


class ConcurrencyConflictError(AppException):
    """The aggregate kept changing underneath the update."""

    def __init__(self, group_id: str, attempts: int) -> None:
        super().__init__(
            error_code=ErrorCode.CONCURRENCY_CONFLICT,
            message="The study group was modified concurrently, please retry",
            status_code=409,
            details={"group_id": group_id, "attempts": attempts},
        )
