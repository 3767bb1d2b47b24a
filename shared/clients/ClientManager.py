import importlib

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class ClientManager:
    """
    Instantiates the client of one type for the engine named in <TYPE>_ENGINE.

    Engine "qdrant" for type "store" resolves to the class
    shared.clients.store.qdrant.ChunkStoreQdrant.ChunkStoreQdrant.
    """

    client_type: str = ""
    class_prefix: str = ""

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Returns:
            str: Capitalised engine name (e.g. "Qdrant").

        Raises:
            ValueError: If <TYPE>_ENGINE is not set.
        """
        engine = self.helper_config.get_string_val(f"{self.client_type.upper()}_ENGINE")
        return engine.lower().capitalize()

    def _initialize_client(self) -> ClientInterface:
        """
        Raises:
            ValueError: If the engine is unsupported or its client cannot be built.
        """
        engine = self._get_engine_from_env()
        class_name = f"{self.class_prefix}{engine}"
        module_path = f"shared.clients.{self.client_type}.{engine.lower()}.{class_name}"
        try:
            client_class = getattr(importlib.import_module(module_path), class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported {self.client_type} engine specified: '{engine}'. Error: {e}") from e
        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated %s client for engine: %s", self.client_type, engine)
        return client

    def get_client(self) -> ClientInterface:
        return self.client
