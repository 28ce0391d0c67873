"""Exceptions raised by the record linking system."""

from typing import Optional


class RecordLinkError(Exception):
    """Base class for fatal record linking errors."""


class SourceFileNotFoundError(RecordLinkError, FileNotFoundError):
    """A source file does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"File not found: {path}")


class InsufficientSourcesError(RecordLinkError):
    """Fewer than two datasets were supplied."""

    def __init__(self, count: int):
        self.count = count
        super().__init__(
            f"At least two source CSV files are required, got {count}"
        )


class MalformedRowError(RecordLinkError):
    """A row's value count does not match its dataset's header count."""

    def __init__(
        self,
        dataset: str,
        row_number: Optional[int],
        expected: Optional[int] = None,
        actual: Optional[int] = None,
        detail: Optional[str] = None
    ):
        self.dataset = dataset
        self.row_number = row_number
        self.expected = expected
        self.actual = actual
        message = f"Malformed row in {dataset}"
        if row_number is not None:
            message += f" at row {row_number}"
        if expected is not None and actual is not None:
            message += f": expected {expected} values, got {actual}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class InvalidIndexStateError(RecordLinkError):
    """An index operation was attempted out of sequence."""

    def __init__(self, operation: str, state):
        self.operation = operation
        self.state = state
        super().__init__(
            f"Cannot {operation} while index is {getattr(state, 'value', state)}"
        )
