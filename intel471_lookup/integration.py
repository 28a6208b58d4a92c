"""Host-facing entry points: startup, option validation, and batch lookup."""

import logging
from typing import Optional, Sequence

from intel471_lookup.config import (
    LookupOptions,
    OptionError,
    RequestConfig,
    load_request_config,
    validate_options,
)
from intel471_lookup.models import BatchResult, Entity
from intel471_lookup.search.base import SearchClient
from intel471_lookup.search.client import Intel471SearchClient
from intel471_lookup.search.engine import LookupEngine

logger = logging.getLogger("intel471_lookup.integration")


class Integration:
    """A started integration: one immutable client configuration and its engine."""

    def __init__(
        self,
        request_config: RequestConfig,
        client: Optional[SearchClient] = None,
    ):
        self.request_config = request_config
        self.client = client or Intel471SearchClient(request_config)
        self.engine = LookupEngine(self.client, request_config.max_parallel_lookups)

    def validate_options(self, options: LookupOptions) -> list[OptionError]:
        """Validate user options; see ``config.validate_options``."""
        return validate_options(options)

    async def do_lookup(
        self,
        entities: Sequence[Entity],
        options: LookupOptions,
        raise_for_errors: bool = True,
    ) -> BatchResult:
        """
        Look up a batch of entities.

        Args:
            entities: Entities to enrich
            options: Validated endpoint and credentials
            raise_for_errors: Raise ClassifiedLookupError if any entity got a
                classified upstream error (401, 403, 429, 5xx)

        Returns:
            One result per entity, in completion order

        Raises:
            LookupFailedError: If the batch failed
        """
        batch = await self.engine.lookup(entities, options)
        if raise_for_errors:
            batch.raise_for_errors()
        return batch

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "Integration":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


def startup(
    request_config: Optional[RequestConfig] = None,
    client: Optional[SearchClient] = None,
) -> Integration:
    """
    Start the integration.

    Args:
        request_config: Client settings (None = load from environment)
        client: Search client override, mainly for tests

    Returns:
        Ready-to-use integration
    """
    config = request_config if request_config is not None else load_request_config()
    integration = Integration(config, client=client)
    logger.debug(
        "Integration started",
        extra={
            "fields": {
                "proxy": config.proxy,
                "tls_client_cert": bool(config.cert),
                "ca": config.ca,
                "reject_unauthorized": config.reject_unauthorized,
                "timeout_seconds": config.timeout_seconds,
                "max_parallel_lookups": config.max_parallel_lookups,
            }
        },
    )
    return integration
