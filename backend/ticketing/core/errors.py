"""Domain error codes for the ticketing core."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_INPUT = "INVALID_INPUT"
    TICKET_NOT_FOUND = "TICKET_NOT_FOUND"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidInputError(DomainError):
    """Raised when a stadium id, date, kind or quantity is malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_INPUT, message=message)


class TicketNotFoundError(DomainError):
    """Raised when a ticket definition does not exist for the stadium."""

    def __init__(self, stadium_id: str, ticket_id: int) -> None:
        super().__init__(
            code=ErrorCode.TICKET_NOT_FOUND,
            message=f"Ticket {ticket_id} not found for stadium {stadium_id}",
        )


class StoreUnavailableError(DomainError):
    """Raised when the database cannot be reached or refuses the transaction."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            code=ErrorCode.STORE_UNAVAILABLE,
            message=f"Ticket store unavailable: {detail}",
        )


class ImpossibleDateError(InvalidInputError):
    """Raised for a well-formed YYYY-MM-DD string that names no real day."""

    def __init__(self, value: str) -> None:
        super().__init__(message=f"Invalid calendar date: {value}")
