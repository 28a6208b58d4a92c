"""Pytest configuration and shared fixtures."""

import asyncio
from typing import Optional

import pytest

from intel471_lookup.config import LookupOptions, RequestConfig
from intel471_lookup.models import Entity, EntityType, Hit, LookupOutcome, Miss
from intel471_lookup.search.base import SearchClient

BASE_URL = "https://api.example.com"


class StubSearchClient(SearchClient):
    """Deterministic in-memory search client that records concurrency."""

    def __init__(
        self,
        outcomes: Optional[dict] = None,
        delays: Optional[dict[str, float]] = None,
        failures: Optional[dict[str, Exception]] = None,
        default_delay: float = 0.0,
    ):
        # outcomes maps entity value -> "hit" | "miss" or a prepared outcome
        self.outcomes = outcomes or {}
        self.delays = delays or {}
        self.failures = failures or {}
        self.default_delay = default_delay
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls: list[str] = []
        self.cancelled: list[str] = []
        self.closed = False

    async def search(self, entity: Entity, options: LookupOptions) -> LookupOutcome:
        self.calls.append(entity.value)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(entity.value, self.default_delay))
            if entity.value in self.failures:
                raise self.failures[entity.value]
            outcome = self.outcomes.get(entity.value, "miss")
            if outcome == "hit":
                return Hit(entity, {"indicators": [{"value": entity.value}]})
            if outcome == "miss":
                return Miss(entity)
            return outcome
        except asyncio.CancelledError:
            self.cancelled.append(entity.value)
            raise
        finally:
            self.in_flight -= 1

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def options():
    """Valid lookup options pointing at the mocked API."""
    return LookupOptions(url=BASE_URL, user_name="analyst", api_key="secret-key")


@pytest.fixture
def request_config():
    """Client settings with no TLS overrides."""
    return RequestConfig()


@pytest.fixture
def ip_entity():
    return Entity("1.2.3.4", EntityType.IPV4, 1)


@pytest.fixture
def hit_body():
    """Search response with a non-empty indicators list."""
    return {
        "indicators": [
            {
                "uid": "c4b3a1",
                "data": {"indicator_type": "ipv4", "indicator_data": {"address": "1.2.3.4"}},
            }
        ],
        "reports": [],
        "actors": [],
    }


@pytest.fixture
def empty_body():
    """Search response where every recognized list is empty."""
    return {
        "indicators": [],
        "cveReports": [],
        "reports": [],
        "actors": [],
        "iocTotalCount": 0,
    }


@pytest.fixture
def entity_file(tmp_path):
    """Create a temporary file with entities of every supported type."""
    content = """# Test entities
# IPs
1.2.3.4
2001:db8::1

# Domains and URLs
evil.example.com
http://malware.site/payload.exe

# Email
actor@evil.example.com

# CVE
CVE-2021-44228

# Hashes
d41d8cd98f00b204e9800998ecf8427e
da39a3ee5e6b4b0d3255bfef95601890afd80709
e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855
"""
    f = tmp_path / "entities.txt"
    f.write_text(content)
    return str(f)


@pytest.fixture
def mixed_entity_file(tmp_path):
    """Create a temporary file with valid, malformed, and duplicate entities."""
    content = """# Mixed entities
1.2.3.4
evil.example.com

# Duplicate
1.2.3.4

# Malformed
999.999.999.999

# Case-insensitive duplicate
EVIL.EXAMPLE.COM
"""
    f = tmp_path / "mixed.txt"
    f.write_text(content)
    return str(f)


@pytest.fixture
def stub_client_cls():
    """Return the stub search client class."""
    return StubSearchClient
