"""
Shared test fixtures for the whole suite.

Provides: helper config with a plain logger, retrieval settings, chunk factory,
AsyncMock collaborators (store, embedding, LLM) and backend env variables.
"""

import logging
from unittest.mock import AsyncMock

import pytest

from shared.helper.HelperConfig import HelperConfig
from shared.models.chunk import Chunk
from shared.models.config import RetrievalSettings


@pytest.fixture
def helper_config() -> HelperConfig:
    """Provide HelperConfig backed by a plain stdlib logger."""
    return HelperConfig(logger=logging.getLogger("access_rag.tests"))


@pytest.fixture
def settings() -> RetrievalSettings:
    """Provide default retrieval settings."""
    return RetrievalSettings()


@pytest.fixture
def make_chunk():
    """Provide a factory for chunks with sensible defaults."""

    def _make_chunk(
        chunk_id: str,
        organization: str = "Acme",
        project: str = "",
        required_roles: set[str] | None = None,
        embedding: list[float] | None = None,
        content: str | None = None,
    ) -> Chunk:
        return Chunk(
            id=chunk_id,
            content=content if content is not None else f"content of {chunk_id}",
            organization=organization,
            project=project,
            required_roles=frozenset(required_roles if required_roles is not None else {"Worker"}),
            embedding=embedding or [],
        )

    return _make_chunk


@pytest.fixture
def mock_store() -> AsyncMock:
    """Provide a mocked chunk store client."""
    store = AsyncMock()
    store.do_fetch_all = AsyncMock(return_value=[])
    store.do_fetch_accessible = AsyncMock(return_value=[])
    store.do_chunk_exists = AsyncMock(return_value=False)
    store.do_insert_chunk = AsyncMock()
    store.do_update_embedding = AsyncMock()
    return store


@pytest.fixture
def mock_embed() -> AsyncMock:
    """Provide a mocked embedding client."""
    embed = AsyncMock()
    embed.do_embed_one = AsyncMock(return_value=[1.0, 0.0])
    return embed


@pytest.fixture
def mock_llm() -> AsyncMock:
    """Provide a mocked generation client."""
    llm = AsyncMock()
    llm.do_generate = AsyncMock(return_value="generated answer")
    return llm


@pytest.fixture
def backend_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set the environment needed to construct the Qdrant and Ollama clients."""
    monkeypatch.setenv("STORE_QDRANT_BASE_URL", "http://qdrant.test:6333")
    monkeypatch.setenv("STORE_QDRANT_COLLECTION", "chunks")
    monkeypatch.setenv("EMBED_OLLAMA_BASE_URL", "http://ollama.test:11434")
    monkeypatch.setenv("EMBED_MODEL", "nomic-embed-text")
    monkeypatch.setenv("LLM_OLLAMA_BASE_URL", "http://ollama.test:11434")
    monkeypatch.setenv("LLM_CHAT_MODEL", "llama3")
    monkeypatch.delenv("STORE_QDRANT_API_KEY", raising=False)
    monkeypatch.delenv("EMBED_OLLAMA_API_KEY", raising=False)
    monkeypatch.delenv("LLM_OLLAMA_API_KEY", raising=False)
