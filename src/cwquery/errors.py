"""Error types for cwquery.

everything carries the refId when we know it - the host shows errors next to
the query that caused them, so "malformed period" alone is useless.
"""


class QueryError(Exception):
    """Base class for all cwquery errors."""

    def __init__(self, message: str, ref_id: str | None = None) -> None:
        super().__init__(message)
        self.ref_id = ref_id


class MalformedQueryError(QueryError, ValueError):
    """A query document could not be parsed.

    reported per query - siblings in the same batch keep going.
    """

    def __init__(self, field: str, message: str, ref_id: str | None = None) -> None:
        prefix = f"query {ref_id}: " if ref_id else ""
        super().__init__(f"{prefix}failed to parse '{field}': {message}", ref_id)
        self.field = field


class InvalidTimeRangeError(QueryError, ValueError):
    """The request time window is empty or inverted. Fails the whole batch."""

    def __init__(self, ref_id: str | None = None) -> None:
        super().__init__("invalid time range: start time must be before end time", ref_id)


class UnexpectedAPIResponseError(QueryError, RuntimeError):
    """The metrics API answered with something we did not ask for."""
