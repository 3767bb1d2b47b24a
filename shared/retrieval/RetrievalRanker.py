"""Retrieval ranker: scores an accessible chunk set against a query embedding.

Scores close to 1 mean highly relevant, around 0.5 weak or partial relevance,
below 0.3 likely unrelated.
"""

from typing import Sequence

from shared.helper.HelperConfig import HelperConfig
from shared.models.chunk import Chunk, ScoredChunk
from shared.models.config import RetrievalSettings
from shared.retrieval.vector_math import cosine_similarity


class RetrievalRanker:
    """Orders chunks by cosine similarity to a query and keeps the relevant ones."""

    def __init__(self, helper_config: HelperConfig, settings: RetrievalSettings) -> None:
        self.logging = helper_config.get_logger()
        self._minimum_score = settings.minimum_score
        self._top_k = settings.top_k

    ##########################################
    ################ CORE ####################
    ##########################################

    def rank(
        self,
        query_embedding: Sequence[float],
        chunks: Sequence[Chunk],
        minimum_score: float | None = None,
    ) -> list[ScoredChunk]:
        """Score and order chunks against a query embedding.

        Chunks without an embedding are not scored at all: "not yet embedded"
        is different from "embedded, but dissimilar". The sort is stable, so
        equal scores keep their corpus order.

        Args:
            query_embedding (Sequence[float]): Embedding of the query text.
            chunks (Sequence[Chunk]): Candidate chunks, in corpus order.
            minimum_score (float | None): Override of the configured threshold.

        Returns:
            list[ScoredChunk]: Chunks with score >= minimum_score, descending by score.
        """
        threshold = self._minimum_score if minimum_score is None else minimum_score

        scored = [
            ScoredChunk(chunk=chunk, score=cosine_similarity(chunk.embedding, query_embedding))
            for chunk in chunks
            if chunk.has_embedding()
        ]
        scored.sort(key=lambda item: item.score, reverse=True)
        ranked = [item for item in scored if item.score >= threshold]

        for item in ranked:
            self.logging.debug("ChunkId:%s Score:%.4f", item.chunk.id, item.score)
        self.logging.debug(
            "Ranked %d of %d chunk(s) (%d embedded) at threshold %.2f.",
            len(ranked), len(chunks), len(scored), threshold,
        )
        return ranked

    def select_top_k(self, ranked: Sequence[ScoredChunk], k: int | None = None) -> list[ScoredChunk]:
        """Return the first K ranked chunks, or all of them if fewer remain.

        Args:
            ranked (Sequence[ScoredChunk]): Output of rank().
            k (int | None): Override of the configured top-K.

        Returns:
            list[ScoredChunk]: Prefix of at most K entries.
        """
        k = self._top_k if k is None else k
        return list(ranked[:max(k, 0)])
