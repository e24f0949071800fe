from loguru import logger
import asyncio
import time
from typing import List, Sequence

from photo_search.aggregator import BatchOutcome, merge_outcomes, parse_match_output
from photo_search.batching import DEFAULT_BATCH_SIZE, plan_batches
from photo_search.catalog import MediaCatalog
from photo_search.errors import (
    InvalidRequest,
    MalformedModelOutput,
    ModelRequestFailed,
    SearchUnconfigured,
)
from photo_search.prompts import SearchMode, build_match_messages, select_mode
from photo_search.schemas import MediaRecord, SearchRequest
from photo_search.vision_client import VisionModelClient


class PhotoSearchService:
    """
    Runs one search end to end: catalog -> batches -> vision model -> merged ids.
    Holds no per-request state, so a single instance can serve concurrent requests.
    """

    def __init__(
        self,
        catalog: MediaCatalog,
        vision_client: VisionModelClient,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_concurrency: int = 1,
    ):
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.catalog = catalog
        self.vision_client = vision_client
        self.batch_size = batch_size
        self.max_concurrency = max_concurrency

    async def search(self, request: SearchRequest) -> List[str]:
        if not request.event_id:
            raise InvalidRequest("Event ID is required")

        if not self.vision_client.is_configured:
            raise SearchUnconfigured("Vision model API key is not configured")

        start_time = time.time()
        photos = await self.catalog.fetch_photos(request.event_id)
        if not photos:
            return []

        mode = select_mode(request.query, request.image)
        if mode == SearchMode.NONE:
            logger.info(f"Event {request.event_id}: no query and no reference image, nothing to match")
            return []

        batches = plan_batches(photos, self.batch_size)
        outcomes = await self._run_batches(request, batches)
        media_ids = merge_outcomes(outcomes)

        failed = sum(1 for o in outcomes if not o.succeeded)
        logger.info(
            f"Event: [{request.event_id}] | Mode: {mode.value} | "
            f"Photos: {len(photos)} | Batches: {len(batches)} (failed: {failed}) | "
            f"Matches: {len(media_ids)} | "
            f"Time: {round((time.time() - start_time) * 1000, 2)}ms"
        )
        return media_ids

    async def _run_batches(
        self, request: SearchRequest, batches: Sequence[Sequence[MediaRecord]]
    ) -> List[BatchOutcome]:
        # gather keeps batch order, so the merged list is stable for a given catalog order
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(index: int, batch: Sequence[MediaRecord]) -> BatchOutcome:
            async with semaphore:
                return await self._run_batch(request, index, batch)

        return list(await asyncio.gather(*(bounded(i, b) for i, b in enumerate(batches))))

    async def _run_batch(
        self, request: SearchRequest, index: int, batch: Sequence[MediaRecord]
    ) -> BatchOutcome:
        messages = build_match_messages(batch, query=request.query, image=request.image)
        try:
            raw = await self.vision_client.complete(messages)
            return BatchOutcome.ok(index, parse_match_output(raw))
        except ModelRequestFailed as e:
            logger.warning(
                f"⚠️ Event {request.event_id} batch {index}: model request failed "
                f"(status={e.status_code}): {e.body[:200]}"
            )
            return BatchOutcome.failed(index, e)
        except MalformedModelOutput as e:
            logger.warning(f"⚠️ Event {request.event_id} batch {index}: {e}")
            return BatchOutcome.failed(index, e)
