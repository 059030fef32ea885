# cfa_planning/core/exceptions.py
"""
Domain-specific exceptions for the planning core.

Services raise these; routes turn them into HTTP errors through
to_http_exception().
Conflicts between slots are NOT exceptions: they are returned as data.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Root of the planning error hierarchy; carries a machine-readable code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException using the class status code."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Input rejected by a service-level check."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """A referenced slot, occurrence, room, instructor or calendar is missing."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """The write would collide with data that already exists."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """A request that is well-formed but not allowed in the current state."""

    status_code = HTTP_422_UNPROCESSABLE


class ServiceException(DomainException):
    """Unexpected failure below the domain layer (usually the database)."""

    def to_http_exception(self) -> HTTPException:
        # Database error text stays in the log
        return HTTPException(
            status_code=self.status_code,
            detail={"message": self.message, "code": self.code, "details": {}},
        )


# Specific business exceptions


class InvalidStatusTransitionException(BusinessRuleException):
    """Raised when an occurrence status change is not in the allowed table."""

    def __init__(self, current_status: str, target_status: str):
        super().__init__(
            message=f"Cannot change occurrence status from {current_status} to {target_status}",
            code="INVALID_STATUS_TRANSITION",
            details={
                "current_status": current_status,
                "target_status": target_status,
            },
        )


class InactiveSlotException(BusinessRuleException):
    """Raised when materialization is requested for a deactivated slot."""

    def __init__(self, slot_id: str):
        super().__init__(
            message="Inactive recurring slots cannot be materialized",
            code="INACTIVE_SLOT",
            details={"slot_id": slot_id},
        )


class RepositoryException(Exception):
    """A query or flush failed inside a repository (wraps SQLAlchemyError)."""
