from abc import abstractmethod
import json

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.clients.errors import CollaboratorError
from shared.clients.store.models.Scroll import ScrollResult
from shared.helper.HelperConfig import HelperConfig
from shared.models.access import AccessRule
from shared.models.chunk import Chunk

SCROLL_PAGE_SIZE = 1000


class ChunkStoreInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "store"
        """
        return "store"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_scroll(self) -> str:
        """
        Returns the endpoint path for scroll requests (e.g. "/collections/chunks/points/scroll").
        """
        pass

    @abstractmethod
    def _get_endpoint_points(self) -> str:
        """
        Returns the endpoint path for point upsert requests (e.g. "/collections/chunks/points").
        """
        pass

    @abstractmethod
    def _get_endpoint_vectors(self) -> str:
        """
        Returns the endpoint path for updating the vectors of existing points.
        """
        pass

    @abstractmethod
    def _get_endpoint_check_collection_existence(self) -> str:
        """
        Returns the endpoint path for collection existence check requests.
        """
        pass

    @abstractmethod
    def _get_endpoint_create_collection(self) -> str:
        """
        Returns the endpoint path for create collection requests.
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_scroll_payload(self, filter: dict | None, limit: int, offset: str | int | None = None) -> dict:
        """
        Returns the payload for a scroll request including payloads and vectors.

        Args:
            filter (dict | None): Native filter, or None for the whole collection.
            limit (int): The maximum number of results per page.
            offset (str | int | None): Pagination cursor from the previous page. None starts at the beginning.
        """
        pass

    @abstractmethod
    def get_access_filter(self, rule: AccessRule) -> dict | None:
        """
        Translates an allowing access rule into the backend's native filter.

        The translation may be looser than the rule, never stricter: results
        are re-checked with rule.matches() after fetching.

        Args:
            rule (AccessRule): An access rule with allow=True.

        Returns:
            dict | None: The native filter, or None when the rule is unrestricted.
        """
        pass

    @abstractmethod
    def get_point(self, chunk: Chunk) -> dict:
        """
        Builds the backend point (id, vector, payload) for a chunk.
        """
        pass

    @abstractmethod
    def get_retrieve_payload(self, chunk_ids: list[str]) -> dict:
        """
        Builds the payload that looks up points by ID, without payloads or vectors.
        """
        pass

    @abstractmethod
    def get_vector_update_payload(self, chunk_id: str, vector: list[float]) -> dict:
        """
        Builds the payload that attaches an embedding to an existing chunk.
        """
        pass

    @abstractmethod
    def get_create_collection_payload(self, vector_size: int, distance: str) -> dict:
        """
        Builds the payload for creating the chunk collection.
        """
        pass

    ################ RESPONSE PARSER ##################
    @abstractmethod
    def extract_scroll_content(self, raw_response: dict) -> dict:
        """
        Extracts the relevant content from a raw scroll response.

        Returns:
            dict: A dict with keys "result", "status", "time".
        """
        pass

    @abstractmethod
    def extract_next_page_offset(self, raw_response: dict) -> str | int | None:
        """
        Extracts the pagination cursor for the next scroll page, or None on the last page.
        """
        pass

    @abstractmethod
    def extract_retrieved_ids(self, raw_response: dict) -> list[str]:
        """
        Extracts the IDs of the points found by an ID lookup.
        """
        pass

    @abstractmethod
    def extract_chunk(self, point: dict) -> Chunk:
        """
        Converts a raw point into a Chunk.

        Raises:
            ValueError: If the point payload is malformed.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_existence_check(self) -> bool:
        """Check if the chunk collection exists in the store.

        Returns:
            bool: True if the collection exists, False otherwise.
        """
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_check_collection_existence(),
            raise_on_error=True,
        )
        return bool(resp.json().get("result", {}).get("exists"))

    async def do_create_collection(self, vector_size: int, distance: str = "Cosine") -> httpx.Response:
        """Create the chunk collection.

        Args:
            vector_size (int): Dimension of the embedding vectors.
            distance (str): The distance metric for the vectors.

        Returns:
            httpx.Response: The response from the create collection request.
        """
        self.logging.info("Creating chunk collection (vector size %d, distance %s).", vector_size, distance)
        return await self.do_request(
            method="PUT",
            json=self.get_create_collection_payload(vector_size, distance),
            endpoint=self._get_endpoint_create_collection(),
            raise_on_error=True,
        )

    async def do_chunk_exists(self, chunk_id: str) -> bool:
        """Check whether a chunk with the given ID is already stored.

        Args:
            chunk_id (str): ID of the chunk.

        Returns:
            bool: True if a point with that ID exists.
        """
        resp = await self.do_request(
            method="POST",
            content=json.dumps(self.get_retrieve_payload([chunk_id])),
            endpoint=self._get_endpoint_points(),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )
        return chunk_id in self.extract_retrieved_ids(resp.json())

    async def do_insert_chunk(self, chunk: Chunk) -> None:
        """Store a chunk, with or without its embedding.

        The backend write is an upsert; callers check do_chunk_exists()
        first so a stored chunk is never replaced.

        Args:
            chunk (Chunk): The chunk to store.
        """
        await self.do_request(
            method="PUT",
            content=json.dumps({"points": [self.get_point(chunk)]}),
            endpoint=self._get_endpoint_points(),
            params={"wait": "true"},
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )
        self.logging.info("Stored chunk id=%s (embedded=%s).", chunk.id, chunk.has_embedding())

    async def do_update_embedding(self, chunk_id: str, vector: list[float]) -> None:
        """Attach an embedding to an already stored chunk.

        Args:
            chunk_id (str): ID of the chunk.
            vector (list[float]): The embedding vector.
        """
        await self.do_request(
            method="PUT",
            content=json.dumps(self.get_vector_update_payload(chunk_id, vector)),
            endpoint=self._get_endpoint_vectors(),
            params={"wait": "true"},
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )

    async def do_scroll(self, filter: dict | None, limit: int = SCROLL_PAGE_SIZE, offset: str | int | None = None) -> ScrollResult:
        """Scroll a single page of points.

        Args:
            filter (dict | None): Native filter, or None for the whole collection.
            limit (int): The maximum number of results per page.
            offset (str | int | None): Pagination cursor from the previous page.

        Returns:
            ScrollResult: The page, including next_page_offset when further pages exist.
        """
        resp = await self.do_request(
            method="POST",
            content=json.dumps(self.get_scroll_payload(filter, limit, offset)),
            endpoint=self._get_endpoint_scroll(),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )
        raw_response = resp.json()
        scroll_content = self.extract_scroll_content(raw_response=raw_response)
        return ScrollResult(
            result=scroll_content.get("result", []),
            status=scroll_content.get("status", "ok"),
            time=scroll_content.get("time", 0),
            next_page_offset=self.extract_next_page_offset(raw_response),
        )

    async def do_scroll_all(self, filter: dict | None) -> list[Chunk]:
        """Scroll through ALL points matching the filter, paginating automatically.

        Args:
            filter (dict | None): Native filter, or None for the whole collection.

        Returns:
            list[Chunk]: All matching chunks, in store order.

        Raises:
            CollaboratorError: If a request fails or a point cannot be parsed.
        """
        chunks: list[Chunk] = []
        offset: str | int | None = None
        page = 1
        while True:
            page_result = await self.do_scroll(filter=filter, limit=SCROLL_PAGE_SIZE, offset=offset)
            for point in page_result.result:
                try:
                    chunks.append(self.extract_chunk(point))
                except ValueError as exc:
                    raise CollaboratorError(f"Malformed chunk point {point.get('id')!r}: {exc}") from exc
            self.logging.debug(
                "Fetched chunk page %d from %s, total chunks so far: %d",
                page, self.get_engine_name(), len(chunks),
            )
            offset = page_result.next_page_offset
            if offset is None:
                break
            page += 1
        return chunks

    async def do_fetch_all(self) -> list[Chunk]:
        """Fetch the whole corpus.

        Returns:
            list[Chunk]: Every stored chunk.
        """
        return await self.do_scroll_all(filter=None)

    async def do_fetch_accessible(self, rule: AccessRule) -> list[Chunk]:
        """Fetch the chunks an access rule admits.

        The rule is pushed down as a native filter, then re-checked in memory
        so the result never depends on the backend's filter semantics.
        A deny rule returns immediately without touching the store.

        Args:
            rule (AccessRule): Compiled access rule.

        Returns:
            list[Chunk]: Visible chunks, in store order.
        """
        if not rule.allow:
            return []
        chunks = await self.do_scroll_all(filter=self.get_access_filter(rule))
        return [chunk for chunk in chunks if rule.matches(chunk)]
