"""
Error taxonomy shared by services and the HTTP layer.

Each error carries the HTTP status and the public message the boundary
should send; internal detail stays in logs.
"""
from enum import Enum
from typing import Optional


class ForbiddenReason(str, Enum):
    NOT_ADMIN = "not_admin"
    NOT_USER = "not_user"
    NOT_OWNER = "not_owner"
    UNAUTHENTICATED = "unauthenticated"


class AuthFailure(str, Enum):
    INVALID_CREDENTIAL = "invalid_credential"
    NOT_FOUND = "not_found"


class CatalogError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CatalogError):
    status_code = 400
    default_message = "bad request"


class EmptyQuery(ValidationError):
    default_message = "At least one search criterion is required"


class MissingAsset(ValidationError):
    default_message = "Both a pdf and an image file are required"


class AuthError(CatalogError):
    status_code = 400

    _MESSAGES = {
        AuthFailure.INVALID_CREDENTIAL: "Password does not match",
        AuthFailure.NOT_FOUND: "User does not exist",
    }

    def __init__(self, failure: AuthFailure):
        self.failure = failure
        super().__init__(self._MESSAGES[failure])


class Forbidden(CatalogError):
    status_code = 403

    _MESSAGES = {
        ForbiddenReason.NOT_ADMIN: "This action requires an administrator",
        ForbiddenReason.NOT_USER: "Administrators cannot perform this action",
        ForbiddenReason.NOT_OWNER: "You do not own this resource",
        ForbiddenReason.UNAUTHENTICATED: "Login required",
    }

    def __init__(self, reason: ForbiddenReason, message: Optional[str] = None):
        self.reason = reason
        if reason is ForbiddenReason.UNAUTHENTICATED:
            self.status_code = 401
        super().__init__(message or self._MESSAGES[reason])


class Conflict(CatalogError):
    status_code = 409
    default_message = "Conflict"


class DuplicateRegistration(Conflict):
    status_code = 400
    default_message = "User already exists"


class InvalidTransition(Conflict):
    default_message = "Request has already been decided"


class NotFound(CatalogError):
    status_code = 404
    default_message = "Not found"


class StoreError(CatalogError):
    status_code = 500
    default_message = "Internal server error"
