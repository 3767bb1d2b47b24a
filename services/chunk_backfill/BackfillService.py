"""Embedding backfill service.

Computes embeddings for stored chunks that have none yet, e.g. after chunks
were migrated into the store without them. Chunks that already carry an
embedding are skipped, so the run is idempotent and resumes exactly where a
previous partial run stopped.
"""

import asyncio

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.store.ChunkStoreInterface import ChunkStoreInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.backfill import BackfillReport
from shared.models.chunk import Chunk
from shared.models.config import RetrievalSettings


class BackfillService:
    """Fills in missing chunk embeddings with bounded parallelism."""

    def __init__(
        self,
        helper_config: HelperConfig,
        settings: RetrievalSettings,
        store_client: ChunkStoreInterface,
        embed_client: EmbedClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._concurrency = settings.backfill_concurrency
        self._store = store_client
        self._embed = embed_client

    ##########################################
    ############### CORE SYNC ################
    ##########################################

    async def do_backfill(self) -> BackfillReport:
        """Embed every stored chunk that has no embedding yet.

        A failure on one chunk is logged and counted; it never stops the
        remaining chunks.

        Returns:
            BackfillReport: Counts of embedded, skipped and failed chunks.

        Raises:
            CollaboratorError: If the corpus itself cannot be fetched.
        """
        self.logging.info("Starting embedding backfill...")
        corpus = await self._store.do_fetch_all()
        missing = [chunk for chunk in corpus if not chunk.has_embedding()]
        report = BackfillReport(total=len(corpus), skipped=len(corpus) - len(missing))

        if not missing:
            self.logging.info("Backfill: all %d chunk(s) already embedded.", len(corpus))
            return report

        self.logging.info("Backfill: embedding %d of %d chunk(s)...", len(missing), len(corpus))
        sem = asyncio.Semaphore(self._concurrency)
        results = await asyncio.gather(
            *[self._backfill_chunk(chunk, sem) for chunk in missing],
            return_exceptions=True,
        )

        for chunk, result in zip(missing, results):
            if isinstance(result, BaseException):
                report.failed += 1
                report.failed_ids.append(chunk.id)
            else:
                report.embedded += 1

        self.logging.info(
            "Backfill complete: %d embedded, %d skipped, %d errors.",
            report.embedded, report.skipped, report.failed,
        )
        return report

    ##########################################
    ############# CHUNK BACKFILL #############
    ##########################################

    async def _backfill_chunk(self, chunk: Chunk, sem: asyncio.Semaphore) -> None:
        """Embed a single chunk and persist the vector.

        Args:
            chunk (Chunk): A chunk without embedding.
            sem (asyncio.Semaphore): Concurrency limiter.

        Raises:
            Exception: Propagated to gather() if embedding or the update fails.
        """
        async with sem:
            try:
                vector = await self._embed.do_embed_one(chunk.content)
                await self._store.do_update_embedding(chunk.id, vector)
            except Exception as exc:
                self.logging.error("Backfill failed for chunk id=%s: %s", chunk.id, exc)
                raise
            self.logging.debug("Backfilled chunk id=%s (%d dimensions).", chunk.id, len(vector))
