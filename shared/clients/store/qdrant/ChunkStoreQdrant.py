from shared.clients.store.ChunkStoreInterface import ChunkStoreInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.access import AccessRule
from shared.models.chunk import Chunk, ChunkPayload
from shared.models.config import EnvConfig

# named vector, so chunks can be stored before they are embedded
VECTOR_NAME = "content"


class ChunkStoreQdrant(ChunkStoreInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._collection_name = self.get_config_val("COLLECTION", default="chunks", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Qdrant"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="COLLECTION", val_type="string", default="chunks"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"api-key": f"{self._api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/healthz"

    def _get_endpoint_scroll(self) -> str:
        return f"/collections/{self._collection_name}/points/scroll"

    def _get_endpoint_points(self) -> str:
        return f"/collections/{self._collection_name}/points"

    def _get_endpoint_vectors(self) -> str:
        return f"/collections/{self._collection_name}/points/vectors"

    def _get_endpoint_check_collection_existence(self) -> str:
        return f"/collections/{self._collection_name}/exists"

    def _get_endpoint_create_collection(self) -> str:
        return f"/collections/{self._collection_name}"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_scroll_payload(self, filter: dict | None, limit: int, offset: str | int | None = None) -> dict:
        payload = {
            "limit": limit,
            "with_payload": True,
            "with_vector": [VECTOR_NAME],
        }
        if filter is not None:
            payload["filter"] = filter
        if offset is not None:
            payload["offset"] = offset
        return payload

    def get_access_filter(self, rule: AccessRule) -> dict | None:
        if rule.is_unrestricted():
            return None
        conditions: list[dict] = []
        if rule.organization is not None:
            conditions.append({"key": "organization", "match": {"value": rule.organization}})
        if rule.any_of_roles is not None:
            conditions.append({"key": "required_roles", "match": {"any": sorted(rule.any_of_roles)}})
        if rule.project is not None:
            conditions.append({"key": "project", "match": {"value": rule.project}})
        return {"must": conditions}

    def get_point(self, chunk: Chunk) -> dict:
        return {
            "id": chunk.id,
            "vector": {VECTOR_NAME: chunk.embedding} if chunk.has_embedding() else {},
            "payload": ChunkPayload.from_chunk(chunk).model_dump(),
        }

    def get_retrieve_payload(self, chunk_ids: list[str]) -> dict:
        return {"ids": chunk_ids, "with_payload": False, "with_vector": False}

    def get_vector_update_payload(self, chunk_id: str, vector: list[float]) -> dict:
        return {"points": [{"id": chunk_id, "vector": {VECTOR_NAME: vector}}]}

    def get_create_collection_payload(self, vector_size: int, distance: str) -> dict:
        return {"vectors": {VECTOR_NAME: {"size": vector_size, "distance": distance}}}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_scroll_content(self, raw_response: dict) -> dict:
        result = raw_response.get("result") or {}
        return {
            "result": result.get("points", []),
            "status": raw_response.get("status", "ok"),
            "time": raw_response.get("time", 0),
        }

    def extract_next_page_offset(self, raw_response: dict) -> str | int | None:
        return (raw_response.get("result") or {}).get("next_page_offset")

    def extract_retrieved_ids(self, raw_response: dict) -> list[str]:
        return [str(point["id"]) for point in raw_response.get("result") or [] if "id" in point]

    def extract_chunk(self, point: dict) -> Chunk:
        if "id" not in point:
            raise ValueError("point has no id")
        payload = ChunkPayload.model_validate(point.get("payload") or {})

        vector = point.get("vector") or {}
        if isinstance(vector, dict):
            vector = vector.get(VECTOR_NAME) or []

        return Chunk(
            id=str(point["id"]),
            content=payload.content,
            organization=payload.organization,
            project=payload.project,
            required_roles=frozenset(payload.required_roles),
            embedding=vector,
        )
