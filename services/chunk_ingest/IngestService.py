"""Ingest service. Stores new chunks, embedding them on the way in."""

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.errors import ChunkConflictError
from shared.clients.store.ChunkStoreInterface import ChunkStoreInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.chunk import Chunk


class IngestService:
    """Writes new chunks to the store. Stored chunks are never replaced."""

    def __init__(
        self,
        helper_config: HelperConfig,
        store_client: ChunkStoreInterface,
        embed_client: EmbedClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store = store_client
        self._embed = embed_client

    async def do_ingest(self, chunk: Chunk, embed: bool = True) -> Chunk:
        """Store a chunk.

        Args:
            chunk (Chunk): The chunk to store. An embedding it already carries is kept.
            embed (bool): Compute the embedding now. When False the chunk is
                stored without one and picked up by the next backfill.

        Returns:
            Chunk: The stored chunk.

        Raises:
            ChunkConflictError: If a chunk with the same ID is already stored.
            CollaboratorError: If embedding or storing fails. Nothing is stored
                when the embedding fails.
        """
        if await self._store.do_chunk_exists(chunk.id):
            self.logging.warning("Rejected ingest of chunk id=%s: ID already stored.", chunk.id)
            raise ChunkConflictError(f"Chunk '{chunk.id}' already exists.")

        if embed and not chunk.has_embedding():
            vector = await self._embed.do_embed_one(chunk.content)
            chunk = chunk.model_copy(update={"embedding": vector})
        await self._store.do_insert_chunk(chunk)
        return chunk
