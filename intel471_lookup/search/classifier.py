"""Classification of Intel 471 search responses."""

from typing import Any, Optional

from intel471_lookup.models import (
    ClassifiedError,
    Entity,
    ErrorKind,
    Hit,
    LookupOutcome,
    Miss,
    UnexpectedResponse,
)

# Array-valued fields of a search response; any non-empty one makes a hit
RECOGNIZED_FIELDS: tuple[str, ...] = (
    "indicators",
    "cveReports",
    "spotReports",
    "iocs",
    "events",
    "reports",
    "posts",
    "entities",
    "nids",
    "nidsList",
    "privateMessages",
    "yaras",
    "malwareReports",
    "actors",
)

MISS_STATUSES = frozenset({202, 404})

CLASSIFIED_ERRORS: dict[int, tuple[ErrorKind, str]] = {
    401: (
        ErrorKind.UNAUTHORIZED,
        "Request had Authorization header but token was missing or invalid. "
        "Please ensure your API token is valid.",
    ),
    403: (ErrorKind.ACCESS_DENIED, "Not enough access permissions."),
    429: (
        ErrorKind.RATE_LIMITED,
        "Daily number of requests exceeds limit. "
        "Check Retry-After header to get information about request delay.",
    ),
}

SERVER_ERROR_STATUSES = frozenset({500, 502, 503, 504})
SERVER_ERROR_MESSAGE = "Something went wrong on our End (Intel471 API)"


def is_miss(body: Any) -> bool:
    """
    Check whether a 200 response body carries no matching data.

    Args:
        body: Decoded response body

    Returns:
        True if no recognized field holds a non-empty list
    """
    if not body or not isinstance(body, dict):
        return True

    return not any(
        isinstance(body.get(name), list) and len(body[name]) > 0
        for name in RECOGNIZED_FIELDS
    )


def _unexpected_detail(body: Any) -> str:
    if isinstance(body, dict):
        return f"{body.get('error')}: {body.get('message')}"
    return str(body)


def classify(status_code: int, body: Any, entity: Optional[Entity] = None) -> LookupOutcome:
    """
    Map an upstream status code and body to a lookup outcome.

    Args:
        status_code: HTTP status of the search response
        body: Decoded response body (None when empty)
        entity: The entity the request was made for

    Returns:
        Hit, Miss, ClassifiedError, or UnexpectedResponse
    """
    if status_code == 200:
        if is_miss(body):
            return Miss(entity)
        return Hit(entity, body)

    if status_code in MISS_STATUSES:
        return Miss(entity)

    if status_code in CLASSIFIED_ERRORS:
        kind, message = CLASSIFIED_ERRORS[status_code]
        return ClassifiedError(kind, message, status_code, entity)

    if status_code in SERVER_ERROR_STATUSES:
        return ClassifiedError(
            ErrorKind.SERVER_ERROR, SERVER_ERROR_MESSAGE, status_code, entity
        )

    return UnexpectedResponse(
        status=status_code, raw=body, detail=_unexpected_detail(body)
    )
