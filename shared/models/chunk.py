"""Pydantic models for content chunks.

Hierarchy:
  Chunk        — retrievable content fragment with tenant/role metadata.
  ChunkPayload — metadata stored alongside each chunk vector in the store.
  ScoredChunk  — a chunk paired with its relevance score for a query.
"""

import uuid

from pydantic import BaseModel, ConfigDict, Field


class Chunk(BaseModel):
    """Atomic retrievable content fragment.

    The embedding is empty until computed and is written at most once
    (on ingest or by the backfill). Everything else is read-only once stored.

    Attributes:
        id:             Unique identifier (UUID string, usable as a store point ID).
        content:        Raw text of the chunk.
        organization:   Tenant that owns the chunk.
        project:        Project scope. Empty string means general / non-restricted.
        required_roles: Roles of which a reader needs at least one.
        embedding:      Embedding vector; empty until computed.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    content: str = ""
    organization: str = ""
    project: str = ""
    required_roles: frozenset[str] = frozenset()
    embedding: list[float] = []

    def has_embedding(self) -> bool:
        return len(self.embedding) > 0


class ChunkPayload(BaseModel):
    """Metadata stored alongside each chunk vector in the store."""

    content: str
    organization: str
    project: str
    required_roles: list[str] = []

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> "ChunkPayload":
        return cls(
            content=chunk.content,
            organization=chunk.organization,
            project=chunk.project,
            required_roles=sorted(chunk.required_roles),
        )


class ScoredChunk(BaseModel):
    """A chunk together with its cosine similarity to a query embedding."""

    chunk: Chunk
    score: float
