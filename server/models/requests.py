import uuid

from pydantic import BaseModel


class QueryRequest(BaseModel):
    query: str = ""


class ChunkIngestRequest(BaseModel):
    content: str
    organization: str = ""
    project: str = ""
    required_roles: list[str] = []
    id: uuid.UUID | None = None
    embed: bool = True
