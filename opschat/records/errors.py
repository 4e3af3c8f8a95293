"""Errors raised by the business records service."""

from opschat.connectors.base import QueryError

FOREIGN_KEY_VIOLATION = "23503"
UNIQUE_VIOLATION = "23505"


class RecordError(Exception):
    """
    Failure of a records operation, carrying the HTTP status it maps to.

    Attributes:
        status_code: HTTP status code (400, 404, 409 or 500)
        message: Client-facing message
    """

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @classmethod
    def from_query_error(
        cls,
        error: QueryError,
        not_found: str | None = None,
        conflict: str | None = None,
    ) -> "RecordError":
        """Translate a database error by its SQLSTATE."""
        if error.code == FOREIGN_KEY_VIOLATION and not_found:
            return cls(404, not_found)
        if error.code == UNIQUE_VIOLATION and conflict:
            return cls(409, conflict)
        return cls(500, "Database error")
