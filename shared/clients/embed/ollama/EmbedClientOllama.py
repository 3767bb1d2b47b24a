from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class EmbedClientOllama(EmbedClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Ollama"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return ""

    def get_endpoint_embedding(self) -> str:
        return "/api/embed"

    def get_endpoint_model_details(self) -> str:
        return "/api/show"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the Ollama embedding request body.

        Returns:
            dict: {"model": "...", "input": [...]}
        """
        return {"model": self.embed_model, "input": texts}

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_vector_size_from_model_info(self, model_info: dict) -> int:
        info: dict = model_info.get("model_info") or {}
        architecture = info.get("general.architecture")
        size = info.get(f"{architecture}.embedding_length") if architecture else None
        if size is None:
            sizes = [value for key, value in info.items() if key.endswith(".embedding_length")]
            size = sizes[0] if len(sizes) == 1 else None
        if size is None:
            raise ValueError(f"Could not determine embedding vector size for model {self.embed_model}")
        return int(size)

    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from an Ollama /api/embed response.

        All vectors of one response share one dimension.

        Args:
            response_data (dict): {"embeddings": [[...], [...]]}, already in input order.

        Raises:
            ValueError: If embeddings are missing, empty or of mixed dimension.
        """
        embeddings = response_data.get("embeddings")
        if not embeddings or not all(embeddings):
            raise ValueError(
                "Ollama response does not contain valid embeddings. "
                f"Response keys: {list(response_data.keys())}"
            )
        dimensions = {len(vector) for vector in embeddings}
        if len(dimensions) > 1:
            raise ValueError(f"Ollama returned embeddings of mixed dimensions {sorted(dimensions)}.")
        return [[float(x) for x in vector] for vector in embeddings]
