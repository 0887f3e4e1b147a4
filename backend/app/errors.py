from __future__ import annotations


class SeatingError(Exception):
    """Base for every failure the seating managers report to their callers."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class EntityNotFound(SeatingError):
    """A referenced venue, section, row or seat id does not exist."""

    status_code = 404


class ValidationError(SeatingError):
    """Malformed input, or a seat in the wrong reservation state."""

    status_code = 422


class BusinessLogicError(SeatingError):
    """Request is well formed but conflicts with the current hierarchy."""

    status_code = 409
