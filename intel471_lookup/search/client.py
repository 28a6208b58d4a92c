"""Intel 471 search API client."""

import asyncio
import json
import logging
import ssl
from typing import Any, Optional

import aiohttp

from intel471_lookup.config import LookupOptions, RequestConfig
from intel471_lookup.errors import TransportError, UnexpectedStatusError
from intel471_lookup.logging_setup import TRACE
from intel471_lookup.models import Entity, LookupOutcome, UnexpectedResponse
from intel471_lookup.search.base import SearchClient
from intel471_lookup.search.classifier import classify

logger = logging.getLogger("intel471_lookup.client")


def build_ssl_context(config: RequestConfig) -> Optional[ssl.SSLContext]:
    """
    Build an SSL context from the TLS settings, if any are set.

    Certificate files are read here, so a missing or unreadable file fails
    at startup rather than on the first request.

    Returns:
        Configured context, or None to keep aiohttp's default verification
    """
    if not (config.cert or config.ca or config.reject_unauthorized is not None):
        return None

    context = ssl.create_default_context(cafile=config.ca)

    if config.cert:
        context.load_cert_chain(
            config.cert, keyfile=config.key, password=config.passphrase
        )

    if config.reject_unauthorized is False:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    return context


async def _read_body(response: aiohttp.ClientResponse) -> Any:
    """Decode a JSON body, falling back to raw text. Undecodable bytes are replaced."""
    text = await response.text(errors="replace")
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


class Intel471SearchClient(SearchClient):
    """Client for the Intel 471 ``/v1/search`` endpoint."""

    def __init__(
        self,
        config: RequestConfig,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize the client and its TLS settings."""
        self.config = config
        self.ssl_context = build_ssl_context(config)
        self.timeout = (
            aiohttp.ClientTimeout(total=config.timeout_seconds)
            if config.timeout_seconds is not None
            else None
        )
        self.session = session

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure aiohttp session exists."""
        if self.session is None or self.session.closed:
            connector = (
                aiohttp.TCPConnector(ssl=self.ssl_context)
                if self.ssl_context is not None
                else aiohttp.TCPConnector()
            )
            kwargs: dict[str, Any] = {"connector": connector}
            if self.timeout is not None:
                kwargs["timeout"] = self.timeout
            self.session = aiohttp.ClientSession(**kwargs)
        return self.session

    async def search(self, entity: Entity, options: LookupOptions) -> LookupOutcome:
        """Search Intel 471 for the entity value."""
        session = await self._ensure_session()

        url = options.search_url
        params = {"text": entity.value}
        auth = aiohttp.BasicAuth(options.user_name or "", options.api_key or "")

        logger.log(
            TRACE,
            "Request URI",
            extra={"fields": {"method": "GET", "uri": url, "qs": params, "user": options.user_name}},
        )

        try:
            async with session.get(
                url, params=params, auth=auth, proxy=self.config.proxy
            ) as response:
                status = response.status
                body = await _read_body(response)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Intel 471 request failed for {entity.value}: {e!r}")
            raise TransportError(entity, e) from e

        logger.log(
            TRACE,
            "Result of Lookup",
            extra={"fields": {"entity": entity.value, "statusCode": status, "body": body}},
        )

        outcome = classify(status, body, entity)
        if isinstance(outcome, UnexpectedResponse):
            raise UnexpectedStatusError(
                outcome.status, outcome.raw, outcome.detail, entity=entity
            )
        return outcome

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self.session and not self.session.closed:
            await self.session.close()
