"""Domain error codes for the events module."""

from dataclasses import dataclass, field
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    FORBIDDEN = "FORBIDDEN"
    STATE_VIOLATION = "STATE_VIOLATION"
    INVALID_ID = "INVALID_ID"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code, user-safe message and violations."""

    code: ErrorCode
    message: str
    violations: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist or is not visible to the caller."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.NOT_FOUND, message=message)


class ConflictError(DomainError):
    """Raised when a request collides with existing state (duplicates, exhausted capacity)."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.CONFLICT, message=message)


class DuplicateScanError(ConflictError):
    """Raised when a participant already marked present is scanned again."""

    def __init__(self, participant, ticket_id: str) -> None:
        super().__init__("Duplicate scan rejected")
        self.participant = participant
        self.ticket_id = ticket_id


class ValidationFailedError(DomainError):
    """Raised when input breaks one or more rules; every violation is reported."""

    def __init__(self, message: str, violations: list[str] | tuple[str, ...] = ()) -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_FAILED,
            message=message,
            violations=tuple(violations) or (message,),
        )


class ForbiddenError(DomainError):
    """Raised when the caller may not act on the entity."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.FORBIDDEN, message=message)


class StateViolationError(DomainError):
    """Raised when the entity's current status does not permit the operation."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.STATE_VIOLATION, message=message)


class InvalidIdError(DomainError):
    """Raised when an identifier is not a valid UUID."""

    def __init__(self, kind: str = "ID") -> None:
        super().__init__(code=ErrorCode.INVALID_ID, message=f"Invalid {kind} format")
