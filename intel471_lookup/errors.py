"""Exceptions that fail a whole lookup batch."""

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from intel471_lookup.models import ClassifiedError, Entity


class LookupFailedError(Exception):
    """Base class for errors that abort a batch lookup."""

    pass


class TransportError(LookupFailedError):
    """Raised when a request fails before a response is received."""

    def __init__(self, entity: "Entity", cause: BaseException):
        self.entity = entity
        self.cause = cause
        super().__init__(f"Request for {entity.value!r} failed: {cause!r}")


class UnexpectedStatusError(LookupFailedError):
    """Raised when the upstream answers with a status code that has no mapping."""

    def __init__(
        self,
        status: int,
        raw: Any,
        detail: str,
        entity: Optional["Entity"] = None,
    ):
        self.status = status
        self.raw = raw
        self.detail = detail
        self.entity = entity
        super().__init__(f"Unexpected status {status}: {detail}")


class ClassifiedLookupError(LookupFailedError):
    """Raised when a completed batch contains classified upstream errors."""

    def __init__(self, errors: list["ClassifiedError"]):
        if not errors:
            raise ValueError("ClassifiedLookupError requires at least one error")
        self.errors = list(errors)
        first = self.errors[0]
        self.kind = first.kind
        self.message = first.message
        extra = f" (+{len(self.errors) - 1} more)" if len(self.errors) > 1 else ""
        super().__init__(f"{first.kind.value}: {first.message}{extra}")
