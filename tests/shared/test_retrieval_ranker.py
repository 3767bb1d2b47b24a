import pytest

from shared.models.config import RetrievalSettings
from shared.retrieval.RetrievalRanker import RetrievalRanker


@pytest.fixture
def ranker(helper_config, settings) -> RetrievalRanker:
    return RetrievalRanker(helper_config=helper_config, settings=settings)


class TestRank:
    def test_orders_by_descending_score(self, ranker, make_chunk) -> None:
        chunks = [
            make_chunk("low", embedding=[0.5, 1.0]),
            make_chunk("high", embedding=[1.0, 0.0]),
            make_chunk("mid", embedding=[1.0, 0.5]),
        ]

        ranked = ranker.rank([1.0, 0.0], chunks)

        assert [item.chunk.id for item in ranked] == ["high", "mid", "low"]
        scores = [item.score for item in ranked]
        assert scores == sorted(scores, reverse=True)

    def test_drops_scores_below_threshold(self, ranker, make_chunk) -> None:
        chunks = [
            make_chunk("relevant", embedding=[1.0, 0.1]),
            make_chunk("unrelated", embedding=[0.0, 1.0]),
        ]

        ranked = ranker.rank([1.0, 0.0], chunks)

        assert [item.chunk.id for item in ranked] == ["relevant"]

    def test_score_equal_to_threshold_is_kept(self, ranker, make_chunk) -> None:
        chunks = [make_chunk("orthogonal", embedding=[0.0, 1.0])]

        ranked = ranker.rank([1.0, 0.0], chunks, minimum_score=0.0)

        assert [item.chunk.id for item in ranked] == ["orthogonal"]
        assert ranked[0].score == 0.0

    def test_chunks_without_embedding_never_appear(self, ranker, make_chunk) -> None:
        chunks = [
            make_chunk("pending"),
            make_chunk("embedded", embedding=[1.0, 0.0]),
        ]

        ranked = ranker.rank([1.0, 0.0], chunks, minimum_score=-1.0)

        assert [item.chunk.id for item in ranked] == ["embedded"]

    def test_ties_keep_corpus_order(self, ranker, make_chunk) -> None:
        chunks = [make_chunk(f"c{i}", embedding=[1.0, 1.0]) for i in range(5)]

        ranked = ranker.rank([2.0, 2.0], chunks)

        assert [item.chunk.id for item in ranked] == ["c0", "c1", "c2", "c3", "c4"]

    def test_dimension_mismatch_scores_zero_and_is_filtered(self, ranker, make_chunk) -> None:
        chunks = [make_chunk("other-model", embedding=[1.0, 0.0, 0.0])]

        assert ranker.rank([1.0, 0.0], chunks) == []

    def test_uses_configured_threshold(self, helper_config, make_chunk) -> None:
        strict = RetrievalRanker(helper_config=helper_config, settings=RetrievalSettings(minimum_score=0.99))
        chunks = [make_chunk("close", embedding=[1.0, 0.2])]

        assert strict.rank([1.0, 0.0], chunks) == []

    def test_empty_input(self, ranker) -> None:
        assert ranker.rank([1.0, 0.0], []) == []


class TestSelectTopK:
    def test_takes_prefix_of_configured_size(self, helper_config, make_chunk) -> None:
        ranker = RetrievalRanker(helper_config=helper_config, settings=RetrievalSettings(top_k=2))
        ranked = ranker.rank([1.0, 0.0], [make_chunk(f"c{i}", embedding=[1.0, 0.1 * i]) for i in range(4)])

        top = ranker.select_top_k(ranked)

        assert [item.chunk.id for item in top] == ["c0", "c1"]

    def test_returns_all_when_fewer_than_k(self, ranker, make_chunk) -> None:
        ranked = ranker.rank([1.0, 0.0], [make_chunk("only", embedding=[1.0, 0.0])])

        assert len(ranker.select_top_k(ranked, k=5)) == 1

    def test_empty_ranking_gives_empty_selection(self, ranker) -> None:
        assert ranker.select_top_k([]) == []
