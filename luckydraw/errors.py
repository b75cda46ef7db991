from __future__ import annotations

from typing import Optional, Sequence


class RaffleError(Exception):
    """Base class for every failure a user can see as a notification."""

    kind = "raffle_error"
    default_message = "Something went wrong."

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ParseError(RaffleError):
    kind = "parse_error"


class MalformedInputError(ParseError):
    kind = "malformed_input"
    default_message = "An error occurred while parsing the file."


class MissingColumnsError(ParseError):
    kind = "missing_columns"
    default_message = 'The CSV file must contain "number" and "name" columns.'

    def __init__(self, missing: Sequence[str], message: Optional[str] = None) -> None:
        self.missing = tuple(missing)
        super().__init__(message)


class DuplicateNumberError(ParseError):
    kind = "duplicate_number"
    default_message = "The CSV file contains duplicate numbers."

    def __init__(self, numbers: Sequence[int], message: Optional[str] = None) -> None:
        self.numbers = tuple(numbers)
        super().__init__(message)


class DrawError(RaffleError):
    kind = "draw_error"


class EmptyPoolError(DrawError):
    kind = "empty_pool"
    default_message = "There are no participants."


class InvalidCountError(DrawError):
    kind = "invalid_count"
    default_message = "The number of winners must be at least 1."


class InsufficientPoolError(DrawError):
    kind = "insufficient_pool"
    default_message = "The number of winners exceeds the number of participants."


class DrawInProgressError(DrawError):
    kind = "draw_in_progress"
    default_message = "A draw is already in progress."


class SessionClosedError(RuntimeError):
    pass
