"""Backfill runner entry point.

Computes missing chunk embeddings once and exits. Safe to re-run after a
partial failure: already embedded chunks are skipped.

Usage:
    python -m services.chunk_backfill.chunk_backfill
"""

import asyncio

from services.chunk_backfill.BackfillService import BackfillService
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.store.ChunkStoreManager import ChunkStoreManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging


async def main() -> int:
    """Run one backfill pass.

    Returns:
        int: Process exit code, 1 if any chunk failed or a backend is unreachable.
    """
    logger = setup_logging()
    config = HelperConfig(logger=logger)
    store_client = ChunkStoreManager(helper_config=config).get_client()
    embed_client = EmbedClientManager(helper_config=config).get_client()

    try:
        # both backends are required
        for client in (store_client, embed_client):
            await client.boot()
            result = await client.do_healthcheck()
            if not result.is_success:
                logger.error(
                    "%s client '%s' is not reachable (status %d). Aborting.",
                    client.get_client_type().upper(), client.get_engine_name(), result.status_code,
                )
                return 1

        service = BackfillService(
            helper_config=config,
            settings=config.get_retrieval_settings(),
            store_client=store_client,
            embed_client=embed_client,
        )
        report = await service.do_backfill()
        return 1 if report.failed else 0
    finally:
        await store_client.close()
        await embed_client.close()


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
