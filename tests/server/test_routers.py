"""
Test suite for the HTTP surface: API key, forwarded claims, request
validation and the mapping of backend failures to 502.

The lifespan is not run; app.state is populated with mocked services.
"""

import json
import logging
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from server.api_server import app
from server.core.QueryService import NO_DATA_MESSAGE
from server.models.responses import QueryResponse
from shared.access.ClaimsMapper import ClaimsMapper
from shared.clients.errors import ChunkConflictError, CollaboratorError
from shared.models.access import Actor, Principal
from shared.models.backfill import BackfillReport

API_KEY = "test-key"
CLAIMS = {
    "scope": "Files.Read",
    "roles": ["Worker"],
    "organization": "Acme",
    "project": "P1",
    "act": {"organization": "Acme", "identitytype": "agent"},
}


@pytest.fixture
def services(helper_config, monkeypatch) -> dict:
    monkeypatch.setenv("APP_API_KEY", API_KEY)

    query_service = AsyncMock()
    query_service.do_query = AsyncMock(return_value=QueryResponse(response="answer"))
    backfill_service = AsyncMock()
    backfill_service.do_backfill = AsyncMock(return_value=BackfillReport(total=2, embedded=2))
    ingest_service = AsyncMock()
    ingest_service.do_ingest = AsyncMock(side_effect=lambda chunk, embed: chunk)

    app.state.logging = logging.getLogger("access_rag.tests")
    app.state.helper_config = helper_config
    app.state.claims_mapper = ClaimsMapper(helper_config=helper_config)
    app.state.query_service = query_service
    app.state.backfill_service = backfill_service
    app.state.ingest_service = ingest_service
    return {"query": query_service, "backfill": backfill_service, "ingest": ingest_service}


@pytest.fixture
def client(services) -> TestClient:
    return TestClient(app)


def headers(api_key: str | None = API_KEY, claims: dict | str | None = None) -> dict:
    result = {}
    if api_key is not None:
        result["X-Api-Key"] = api_key
    if claims is not None:
        result["X-Auth-Claims"] = claims if isinstance(claims, str) else json.dumps(claims)
    return result


class TestQueryRoute:
    def test_answers_query(self, client, services) -> None:
        resp = client.post("/query", json={"query": "status?"}, headers=headers(claims=CLAIMS))

        assert resp.status_code == 200
        assert resp.json() == {"response": "answer"}
        principal, actor, query = services["query"].do_query.await_args.args
        assert principal == Principal(
            scope="Files.Read", roles=frozenset({"Worker"}), organization="Acme", project="P1"
        )
        assert actor == Actor(organization="Acme", identity_type="agent")
        assert query == "status?"

    def test_generic_message_is_a_normal_response(self, client, services) -> None:
        services["query"].do_query.return_value = QueryResponse(response=NO_DATA_MESSAGE)

        resp = client.post("/query", json={"query": "secret?"}, headers=headers(claims=CLAIMS))

        assert resp.status_code == 200
        assert resp.json() == {"response": NO_DATA_MESSAGE}

    @pytest.mark.parametrize("body", [{"query": ""}, {"query": "   "}, {}])
    def test_blank_query_is_rejected(self, client, services, body) -> None:
        resp = client.post("/query", json=body, headers=headers(claims=CLAIMS))

        assert resp.status_code == 400
        assert resp.json() == {"detail": "Query is required."}
        services["query"].do_query.assert_not_awaited()

    @pytest.mark.parametrize("api_key", [None, "wrong-key"])
    def test_invalid_api_key_is_rejected(self, client, services, api_key) -> None:
        resp = client.post("/query", json={"query": "q"}, headers=headers(api_key=api_key, claims=CLAIMS))

        assert resp.status_code == 401
        services["query"].do_query.assert_not_awaited()

    def test_missing_claims_are_rejected(self, client) -> None:
        resp = client.post("/query", json={"query": "q"}, headers=headers())

        assert resp.status_code == 401
        assert resp.json() == {"detail": "Missing authentication claims."}

    @pytest.mark.parametrize("claims", ["{not json", "[1, 2]", '"Files.Read"'])
    def test_malformed_claims_are_rejected(self, client, claims) -> None:
        resp = client.post("/query", json={"query": "q"}, headers=headers(claims=claims))

        assert resp.status_code == 401
        assert resp.json() == {"detail": "Malformed authentication claims."}

    def test_backend_failure_maps_to_502(self, client, services) -> None:
        services["query"].do_query.side_effect = CollaboratorError("qdrant unreachable at http://qdrant:6333")

        resp = client.post("/query", json={"query": "q"}, headers=headers(claims=CLAIMS))

        assert resp.status_code == 502
        assert "qdrant" not in resp.text


class TestChunkRoute:
    def test_ingests_chunk(self, client, services) -> None:
        body = {"content": "hello", "organization": "Acme", "project": "P1", "required_roles": ["Worker"]}

        resp = client.post("/chunks", json=body, headers=headers())

        assert resp.status_code == 200
        chunk = services["ingest"].do_ingest.await_args.args[0]
        assert chunk.content == "hello"
        assert chunk.required_roles == frozenset({"Worker"})
        assert resp.json() == {"id": chunk.id, "embedded": False}
        assert services["ingest"].do_ingest.await_args.kwargs == {"embed": True}

    def test_keeps_client_supplied_id(self, client, services) -> None:
        chunk_id = "6f1c1f1e-3b7a-4c55-9a37-1a2b3c4d5e6f"

        resp = client.post("/chunks", json={"content": "x", "id": chunk_id, "embed": False}, headers=headers())

        assert resp.json()["id"] == chunk_id
        assert services["ingest"].do_ingest.await_args.kwargs == {"embed": False}

    def test_existing_id_conflicts(self, client, services) -> None:
        chunk_id = "6f1c1f1e-3b7a-4c55-9a37-1a2b3c4d5e6f"
        services["ingest"].do_ingest.side_effect = ChunkConflictError(f"Chunk '{chunk_id}' already exists.")

        resp = client.post("/chunks", json={"content": "x", "id": chunk_id}, headers=headers())

        assert resp.status_code == 409
        assert chunk_id in resp.json()["detail"]

    def test_invalid_id_is_rejected(self, client) -> None:
        resp = client.post("/chunks", json={"content": "x", "id": "not-a-uuid"}, headers=headers())

        assert resp.status_code == 422

    def test_requires_api_key(self, client) -> None:
        assert client.post("/chunks", json={"content": "x"}, headers=headers(api_key=None)).status_code == 401


class TestBackfillRoute:
    def test_completed(self, client) -> None:
        resp = client.post("/backfill", headers=headers())

        assert resp.status_code == 200
        assert resp.json()["status"] == "completed"
        assert resp.json()["report"]["embedded"] == 2

    def test_partial_when_some_chunks_failed(self, client, services) -> None:
        services["backfill"].do_backfill.return_value = BackfillReport(
            total=3, embedded=2, failed=1, failed_ids=["c3"]
        )

        resp = client.post("/backfill", headers=headers())

        assert resp.json()["status"] == "partial"
        assert resp.json()["report"]["failed_ids"] == ["c3"]

    def test_requires_api_key(self, client) -> None:
        assert client.post("/backfill", headers=headers(api_key="wrong")).status_code == 401
