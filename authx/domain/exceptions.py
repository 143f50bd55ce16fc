"""
Domain exceptions - Semantic error types for account operations.

Two layers of errors live here. Storage errors are raised by repository
adapters after translating engine-specific signals. Account errors are
raised by the workflow and are the only errors the delivery layer sees.
"""


class StorageError(Exception):
    """Unexpected persistence failure, tagged with the failing operation."""

    def __init__(self, op: str, message: str = "storage failure") -> None:
        self.op = op
        super().__init__(f"{op}: {message}")


class RecordNotFound(StorageError):
    """No row matched the lookup."""

    def __init__(self, op: str) -> None:
        super().__init__(op, "record not found")


class RecordConflict(StorageError):
    """A uniqueness constraint rejected the write."""

    def __init__(self, op: str) -> None:
        super().__init__(op, "record already exists")


class AccountError(Exception):
    """
    Base class for account workflow errors.

    `message` is safe to show to callers; `op` names the operation
    that failed and is only meant for logs.
    """

    default_message = "account error"

    def __init__(self, message: str | None = None, *, op: str | None = None) -> None:
        self.message = message or self.default_message
        self.op = op
        super().__init__(f"{op}: {self.message}" if op else self.message)


class BadRequest(AccountError):
    """Malformed input or failed credential match."""

    default_message = "bad request"


class Conflict(AccountError):
    """Email or username already taken."""

    default_message = "user already exists"


class NotFound(AccountError):
    """No matching user."""

    default_message = "user not found"


class Unknown(AccountError):
    """Unexpected infrastructure failure; the cause is chained, never shown."""

    default_message = "internal error"


class OperationCancelled(AccountError):
    """The caller's deadline was cancelled or ran out."""

    default_message = "operation cancelled"
