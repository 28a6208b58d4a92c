"""Bounded fan-out lookup of entity batches."""

import asyncio
import logging
from typing import Sequence

from intel471_lookup.config import MAX_PARALLEL_LOOKUPS, LookupOptions
from intel471_lookup.models import (
    BatchResult,
    ClassifiedError,
    Entity,
    Hit,
    LookupData,
    LookupOutcome,
    LookupResult,
)
from intel471_lookup.search.base import SearchClient

logger = logging.getLogger("intel471_lookup.engine")


def to_lookup_result(entity: Entity, outcome: LookupOutcome) -> LookupResult:
    """Convert a classified outcome into the public result shape."""
    if isinstance(outcome, Hit):
        return LookupResult(entity=entity, data=LookupData(details=outcome.body))
    if isinstance(outcome, ClassifiedError):
        return LookupResult(entity=entity, data=None, error=outcome)
    return LookupResult(entity=entity, data=None)


class LookupEngine:
    """
    Looks up a batch of entities with at most ``max_parallel_lookups`` requests
    in flight.

    A transport failure or unmapped status code on any entity fails the whole
    batch: the first such error is raised, the remaining tasks are cancelled,
    and no partial results are returned. Classified errors (401, 403, 429, 5xx)
    never abort the batch; they are attached to their entity's result.
    """

    def __init__(
        self,
        client: SearchClient,
        max_parallel_lookups: int = MAX_PARALLEL_LOOKUPS,
    ):
        if max_parallel_lookups < 1:
            raise ValueError("max_parallel_lookups must be at least 1")
        self.client = client
        self.max_parallel_lookups = max_parallel_lookups

    async def lookup(
        self, entities: Sequence[Entity], options: LookupOptions
    ) -> BatchResult:
        """
        Look up all entities concurrently.

        Args:
            entities: Entities to look up
            options: Endpoint and credentials

        Returns:
            One result per entity, in completion order

        Raises:
            LookupFailedError: The first task failure observed
        """
        logger.debug(
            f"Looking up {len(entities)} entities",
            extra={"fields": {"entities": [e.value for e in entities]}},
        )

        if not entities:
            return BatchResult()

        semaphore = asyncio.Semaphore(self.max_parallel_lookups)
        results: list[LookupResult] = []
        failures: list[Exception] = []

        async def run(entity: Entity) -> None:
            try:
                async with semaphore:
                    outcome = await self.client.search(entity, options)
            except Exception as e:
                failures.append(e)
                raise
            results.append(to_lookup_result(entity, outcome))

        tasks = [asyncio.create_task(run(entity)) for entity in entities]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        if failures:
            logger.error(f"Lookup of {len(entities)} entities failed: {failures[0]}")
            raise failures[0]

        batch = BatchResult(results)
        logger.debug(
            f"Lookup complete: {len(batch.hits)} hits, {len(batch.errors)} errors, "
            f"{len(batch)} results",
            extra={"fields": {"results": batch.to_list()}},
        )
        return batch
