import asyncio
from unittest.mock import AsyncMock

import pytest

from services.chunk_backfill.BackfillService import BackfillService
from shared.clients.errors import CollaboratorError
from shared.models.config import RetrievalSettings


class InMemoryStore:
    """Keeps chunks in a dict and applies embedding updates."""

    def __init__(self, chunks) -> None:
        self.chunks = {chunk.id: chunk for chunk in chunks}

    async def do_fetch_all(self):
        return list(self.chunks.values())

    async def do_update_embedding(self, chunk_id, vector):
        self.chunks[chunk_id] = self.chunks[chunk_id].model_copy(update={"embedding": vector})


def make_service(helper_config, store, embed, concurrency: int = 5) -> BackfillService:
    return BackfillService(
        helper_config=helper_config,
        settings=RetrievalSettings(backfill_concurrency=concurrency),
        store_client=store,
        embed_client=embed,
    )


class TestBackfillService:
    async def test_embeds_only_missing_chunks(self, helper_config, mock_embed, make_chunk) -> None:
        store = InMemoryStore([
            make_chunk("done", embedding=[0.3, 0.4]),
            make_chunk("missing-1"),
            make_chunk("missing-2"),
        ])

        report = await make_service(helper_config, store, mock_embed).do_backfill()

        assert (report.total, report.embedded, report.skipped, report.failed) == (3, 2, 1, 0)
        assert store.chunks["done"].embedding == [0.3, 0.4]
        assert store.chunks["missing-1"].embedding == [1.0, 0.0]
        assert mock_embed.do_embed_one.await_count == 2

    async def test_second_run_makes_no_embedding_calls(self, helper_config, mock_embed, make_chunk) -> None:
        store = InMemoryStore([make_chunk(f"c{i}") for i in range(4)])
        service = make_service(helper_config, store, mock_embed)

        await service.do_backfill()
        calls_after_first_run = mock_embed.do_embed_one.await_count
        report = await service.do_backfill()

        assert calls_after_first_run == 4
        assert mock_embed.do_embed_one.await_count == 4
        assert (report.embedded, report.skipped) == (0, 4)

    async def test_failure_on_one_chunk_does_not_stop_the_rest(self, helper_config, make_chunk) -> None:
        store = InMemoryStore([make_chunk("ok-1"), make_chunk("broken", content="boom"), make_chunk("ok-2")])

        async def embed_one(text: str) -> list[float]:
            if text == "boom":
                raise CollaboratorError("embedding backend rejected the text")
            return [0.6, 0.8]

        embed = AsyncMock()
        embed.do_embed_one = AsyncMock(side_effect=embed_one)

        report = await make_service(helper_config, store, embed).do_backfill()

        assert (report.embedded, report.failed) == (2, 1)
        assert report.failed_ids == ["broken"]
        assert store.chunks["ok-1"].has_embedding()
        assert store.chunks["ok-2"].has_embedding()
        assert not store.chunks["broken"].has_embedding()

    async def test_failed_chunk_is_retried_on_next_run(self, helper_config, make_chunk) -> None:
        store = InMemoryStore([make_chunk("flaky")])
        embed = AsyncMock()
        embed.do_embed_one = AsyncMock(side_effect=[CollaboratorError("timeout"), [1.0, 0.0]])
        service = make_service(helper_config, store, embed)

        first = await service.do_backfill()
        second = await service.do_backfill()

        assert first.failed == 1
        assert second.embedded == 1
        assert store.chunks["flaky"].embedding == [1.0, 0.0]

    async def test_concurrency_is_bounded(self, helper_config, make_chunk) -> None:
        store = InMemoryStore([make_chunk(f"c{i}") for i in range(10)])
        in_flight = 0
        peak = 0

        async def embed_one(text: str) -> list[float]:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return [1.0]

        embed = AsyncMock()
        embed.do_embed_one = AsyncMock(side_effect=embed_one)

        report = await make_service(helper_config, store, embed, concurrency=3).do_backfill()

        assert report.embedded == 10
        assert peak <= 3

    async def test_empty_corpus(self, helper_config, mock_embed) -> None:
        report = await make_service(helper_config, InMemoryStore([]), mock_embed).do_backfill()

        assert report.total == 0
        mock_embed.do_embed_one.assert_not_awaited()

    async def test_store_failure_propagates(self, helper_config, mock_store, mock_embed) -> None:
        mock_store.do_fetch_all.side_effect = CollaboratorError("store down")

        with pytest.raises(CollaboratorError):
            await make_service(helper_config, mock_store, mock_embed).do_backfill()
