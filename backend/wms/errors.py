# Overview: Service-layer error taxonomy shared by services, routes and CLI.

"""
Error kinds raised by the tenant-scoped services.

Every error is terminal to the request that triggered it. Routes translate
them to HTTP responses through ``http_status`` and ``code``; services never
retry them.

    NotFoundError            -> 404  referenced entity missing
    PermissionDeniedError    -> 403  guard rejection (carries the permission)
    ConflictError            -> 409  membership / invitation state conflicts
    SelfActionForbiddenError -> 409  actor targeting their own membership
    ValidationError          -> 400  malformed input
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for all service-layer failures."""

    http_status = 500
    code = "service_error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message())

    def default_message(self) -> str:
        return "Service error"

    def to_dict(self) -> dict:
        return {"error": str(self), "code": self.code}


class ValidationError(ServiceError, ValueError):
    """400-level input problem."""

    http_status = 400
    code = "validation_error"

    def default_message(self) -> str:
        return "Invalid request data"


class NotFoundError(ServiceError):
    http_status = 404
    code = "not_found"

    def __init__(self, entity: str, message: str | None = None):
        self.entity = entity
        super().__init__(message or f"{entity.capitalize()} not found")


class PermissionDeniedError(ServiceError):
    """Raised when a member's role lacks the permission (or no membership exists)."""

    http_status = 403
    code = "permission_denied"

    def __init__(self, permission: str):
        self.permission = permission
        super().__init__(f"Permission denied: {permission}")

    def to_dict(self) -> dict:
        return {"error": str(self), "code": self.code, "required_permission": self.permission}


# -- Conflicts --

class ConflictError(ServiceError):
    """409-level business rule conflict."""

    http_status = 409
    code = "conflict"


class AlreadyMemberError(ConflictError):
    code = "already_member"

    def default_message(self) -> str:
        return "User is already a member of this warehouse"


class InvitationAlreadyPendingError(ConflictError):
    code = "invitation_already_pending"

    def default_message(self) -> str:
        return "An invitation is already pending for this email"


class InvitationNotPendingError(ConflictError):
    code = "invitation_not_pending"

    def default_message(self) -> str:
        return "Invitation is no longer pending"


class NotYourInvitationError(ConflictError):
    code = "not_your_invitation"

    def default_message(self) -> str:
        return "This invitation is not for you"


# -- Self actions --

class SelfActionForbiddenError(ServiceError):
    http_status = 409
    code = "self_action_forbidden"


class CannotChangeSelfError(SelfActionForbiddenError):
    code = "cannot_change_self"

    def default_message(self) -> str:
        return "You cannot change your own role"


class CannotRemoveSelfError(SelfActionForbiddenError):
    code = "cannot_remove_self"

    def default_message(self) -> str:
        return "You cannot remove yourself from a warehouse"
