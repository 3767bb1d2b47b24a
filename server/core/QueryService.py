"""Query service: orchestrates access control, ranking and generation.

Flow: access rule → accessible chunks (store) → query embedding → ranking →
top-K context → LLM answer. The access evaluator and the ranker are pure;
all I/O happens here, one awaited collaborator call at a time, so a
cancelled request stops at the next await.
"""

import time

from server.models.responses import QueryResponse
from shared.access.AccessPolicyEvaluator import AccessPolicyEvaluator
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.store.ChunkStoreInterface import ChunkStoreInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.access import Actor, Principal
from shared.models.chunk import ScoredChunk
from shared.retrieval.RetrievalRanker import RetrievalRanker

# same text for "denied" and "nothing relevant", so callers cannot tell them apart
NO_DATA_MESSAGE = "You do not have access to any relevant data."
CONTEXT_SEPARATOR = "\n\n"


class QueryService:
    """Answers a query from the chunks the caller is entitled to see."""

    def __init__(
        self,
        helper_config: HelperConfig,
        evaluator: AccessPolicyEvaluator,
        ranker: RetrievalRanker,
        store_client: ChunkStoreInterface,
        embed_client: EmbedClientInterface,
        llm_client: LLMClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._evaluator = evaluator
        self._ranker = ranker
        self._store = store_client
        self._embed = embed_client
        self._llm = llm_client

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_query(self, principal: Principal, actor: Actor | None, query: str) -> QueryResponse:
        """Answer a natural language query for a principal.

        Args:
            principal (Principal): The authenticated subject.
            actor (Actor | None): The delegated identity, if any.
            query (str): The query text.

        Returns:
            QueryResponse: The LLM answer, or the generic no-data message.

        Raises:
            CollaboratorError: If the store, embedding or LLM backend fails.
        """
        try:
            rule = self._evaluator.build_rule(principal, actor)
            accessible = await self._store.do_fetch_accessible(rule)
            self.logging.info("Accessible Chunks:%d", len(accessible))
            if not accessible:
                return QueryResponse(response=NO_DATA_MESSAGE)

            query_embedding = await self._embed.do_embed_one(query)
            ranked = self._ranker.rank(query_embedding, accessible)
            self.logging.info("Relevant Chunks:%d", len(ranked))
            if not ranked:
                return QueryResponse(response=NO_DATA_MESSAGE)

            context = self.build_context(self._ranker.select_top_k(ranked))
            self.logging.info("Query:%r", query[:200])
            self.logging.debug("Context:%r", context)

            started = time.perf_counter()
            answer = await self._llm.do_generate(query, context)
            self.logging.info("LLM responded in %s ms", f"{(time.perf_counter() - started) * 1000:,.0f}")
            self.logging.debug("Response:%r", answer)
            return QueryResponse(response=answer)
        finally:
            self.logging.info("End of Response")

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def build_context(self, top_chunks: list[ScoredChunk]) -> str:
        """Join the chunk contents in ranked order.

        Args:
            top_chunks (list[ScoredChunk]): The top-K ranked chunks.

        Returns:
            str: Chunk contents separated by blank lines.
        """
        return CONTEXT_SEPARATOR.join(item.chunk.content for item in top_chunks)
