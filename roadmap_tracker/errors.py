"""
Domain exceptions raised by stores and services

Each error carries the HTTP status the API boundary renders it with.
"""


class RoadmapError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RoadmapError):
    """Bad enum value, missing field or range/length violation"""

    status_code = 400


class ConflictError(RoadmapError):
    """Duplicate unique key on create"""

    status_code = 400


class AuthError(RoadmapError):
    """Missing, invalid or expired credentials"""

    status_code = 401


class ForbiddenError(RoadmapError):
    status_code = 403


class NotFoundError(RoadmapError):
    status_code = 404


class OwnershipError(NotFoundError):
    """Record exists but belongs to someone else; rendered exactly like NotFound"""
