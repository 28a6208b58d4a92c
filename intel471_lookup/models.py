"""Data models for Intel 471 entity lookups."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Union

from intel471_lookup.errors import ClassifiedLookupError


class EntityType(Enum):
    """Supported entity types."""

    IPV4 = "ipv4"
    IPV6 = "ipv6"
    DOMAIN = "domain"
    URL = "url"
    EMAIL = "email"
    HASH_MD5 = "hash_md5"
    HASH_SHA1 = "hash_sha1"
    HASH_SHA256 = "hash_sha256"
    CVE = "cve"


@dataclass(frozen=True)
class Entity:
    """An observable submitted for enrichment. ``value`` is the search text."""

    value: str
    entity_type: Optional[EntityType] = None
    line_number: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "type": self.entity_type.value if self.entity_type else None,
        }


class ErrorKind(Enum):
    """Named upstream failure categories that do not abort a batch."""

    UNAUTHORIZED = "Unauthorized"
    ACCESS_DENIED = "Access Denied"
    NOT_FOUND = "Not Found"
    RATE_LIMITED = "Too Many Requests"
    SERVER_ERROR = "Server Error"


@dataclass(frozen=True)
class Hit:
    """Upstream returned matching data for the entity."""

    entity: Entity
    body: Any


@dataclass(frozen=True)
class Miss:
    """Upstream has no data for the entity."""

    entity: Entity


@dataclass(frozen=True)
class ClassifiedError:
    """A mapped upstream failure for one entity."""

    kind: ErrorKind
    message: str
    status: int
    entity: Optional[Entity] = None

    def to_dict(self) -> dict[str, Any]:
        return {"err": self.kind.value, "detail": self.message, "status": self.status}


@dataclass(frozen=True)
class UnexpectedResponse:
    """An unmapped status code, with the raw body and a derived detail string."""

    status: int
    raw: Any
    detail: str


LookupOutcome = Union[Hit, Miss, ClassifiedError, UnexpectedResponse]


@dataclass
class LookupData:
    """Enrichment payload attached to a hit."""

    details: Any
    summary: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"summary": list(self.summary), "details": self.details}


@dataclass
class LookupResult:
    """Public per-entity result of a lookup."""

    entity: Entity
    data: Optional[LookupData] = None
    error: Optional[ClassifiedError] = None

    @property
    def is_hit(self) -> bool:
        return self.data is not None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "entity": self.entity.to_dict(),
            "data": self.data.to_dict() if self.data is not None else None,
        }
        if self.error is not None:
            result["error"] = self.error.to_dict()
        return result


@dataclass
class BatchResult:
    """
    Results of one batch lookup, in task completion order.

    Completion order is not input order. Use ``by_entity`` or ``in_order``
    when the caller needs to correlate or reorder.
    """

    results: list[LookupResult] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self):
        return iter(self.results)

    @property
    def hits(self) -> list[LookupResult]:
        return [r for r in self.results if r.is_hit]

    @property
    def errors(self) -> list[ClassifiedError]:
        return [r.error for r in self.results if r.error is not None]

    def by_entity(self) -> dict[Entity, LookupResult]:
        """
        Index results by entity.

        Assumes each entity appears once in the batch; an entity passed more
        than once maps to its last completed result. Use ``in_order`` to keep
        every result.
        """
        return {r.entity: r for r in self.results}

    def in_order(self, entities: Iterable[Entity]) -> list[LookupResult]:
        """
        Return results reordered to follow ``entities``.

        An entity listed more than once takes its results in completion order.

        Raises:
            KeyError: If an entity has no (remaining) result in this batch
        """
        pending: dict[Entity, list[LookupResult]] = {}
        for result in self.results:
            pending.setdefault(result.entity, []).append(result)

        ordered = []
        for entity in entities:
            results = pending.get(entity)
            if not results:
                raise KeyError(entity)
            ordered.append(results.pop(0))
        return ordered

    def raise_for_errors(self) -> None:
        """
        Raise if any entity produced a classified upstream error.

        Raises:
            ClassifiedLookupError: Carrying every classified error in the batch
        """
        errors = self.errors
        if errors:
            raise ClassifiedLookupError(errors)

    def to_list(self) -> list[dict[str, Any]]:
        return [r.to_dict() for r in self.results]
