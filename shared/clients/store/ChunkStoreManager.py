from shared.clients.ClientManager import ClientManager
from shared.clients.store.ChunkStoreInterface import ChunkStoreInterface


class ChunkStoreManager(ClientManager):
    """Selects the chunk store from STORE_ENGINE."""

    client_type = "store"
    class_prefix = "ChunkStore"

    def get_client(self) -> ChunkStoreInterface:
        return self.client
