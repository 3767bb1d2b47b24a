from pydantic import BaseModel

from shared.models.backfill import BackfillReport


class QueryResponse(BaseModel):
    response: str


class ChunkIngestResponse(BaseModel):
    id: str
    embedded: bool


class BackfillResponse(BaseModel):
    status: str
    report: BackfillReport
