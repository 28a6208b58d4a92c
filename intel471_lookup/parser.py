"""Entity parser and type detection."""

import re
from pathlib import Path
from typing import Iterable, Optional

import validators

from intel471_lookup.models import Entity, EntityType

HEX_RE = re.compile(r"^[a-fA-F0-9]+$")
CVE_RE = re.compile(r"^CVE-\d{4}-\d{4,}$", re.IGNORECASE)

MalformedLine = tuple[int, str, str]


def detect_entity_type(value: str) -> Optional[EntityType]:
    """
    Auto-detect the entity type of a raw value.

    Returns None if unrecognized.
    """
    # Order matters: URL > IP > email > CVE > hashes > domain
    if validators.url(value):
        return EntityType.URL

    if validators.ipv4(value):
        return EntityType.IPV4

    if validators.ipv6(value):
        return EntityType.IPV6

    if validators.email(value):
        return EntityType.EMAIL

    if CVE_RE.match(value):
        return EntityType.CVE

    if HEX_RE.match(value):
        length = len(value)
        if length == 64 and validators.sha256(value):
            return EntityType.HASH_SHA256
        if length == 40 and validators.sha1(value):
            return EntityType.HASH_SHA1
        if length == 32 and validators.md5(value):
            return EntityType.HASH_MD5

    if validators.domain(value):
        return EntityType.DOMAIN

    return None


def _parse_lines(
    lines: Iterable[str],
) -> tuple[list[Entity], list[MalformedLine], int]:
    entities: list[Entity] = []
    malformed_lines: list[MalformedLine] = []
    seen: set[tuple[EntityType, str]] = set()
    duplicates_removed = 0

    for line_num, line in enumerate(lines, start=1):
        raw_line = line.rstrip("\n")
        stripped = raw_line.strip()

        # Skip empty lines and comments
        if not stripped or stripped.startswith("#"):
            continue

        entity_type = detect_entity_type(stripped)
        if entity_type is None:
            malformed_lines.append(
                (
                    line_num,
                    raw_line,
                    "Unrecognized entity type (expected: IP, domain, URL, email, CVE, or hash)",
                )
            )
            continue

        # Deduplicate (case-insensitive)
        key = (entity_type, stripped.lower())
        if key in seen:
            duplicates_removed += 1
            continue

        seen.add(key)
        entities.append(
            Entity(value=stripped, entity_type=entity_type, line_number=line_num)
        )

    return entities, malformed_lines, duplicates_removed


def parse_entity_values(
    values: Iterable[str],
) -> tuple[list[Entity], list[MalformedLine], int]:
    """
    Parse raw values given directly (e.g. on the command line).

    Returns:
        Tuple of (entities, malformed_lines, duplicates_removed); line numbers
        are 1-based positions in ``values``
    """
    return _parse_lines(values)


def parse_entity_file(
    file_path: str,
) -> tuple[list[Entity], list[MalformedLine], int]:
    """
    Parse an entity file and return entities, malformed lines, and duplicate count.

    Args:
        file_path: Path to the entity input file, one value per line

    Returns:
        Tuple of (entities, malformed_lines, duplicates_removed)
        malformed_lines is a list of (line_number, raw_line, error_message) tuples
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Entity file not found: {file_path}")

    with path.open("r", encoding="utf-8") as f:
        return _parse_lines(f)
