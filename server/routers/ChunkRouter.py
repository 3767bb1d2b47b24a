from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import ChunkIngestRequest
from server.models.responses import ChunkIngestResponse
from shared.clients.errors import ChunkConflictError
from shared.models.chunk import Chunk

router = APIRouter(prefix="/chunks", tags=["chunks"])


@router.post("")
async def insert_chunk(
    request: Request,
    body: ChunkIngestRequest,
    _: None = Depends(verify_api_key),
) -> ChunkIngestResponse:
    """Store a new chunk, embedding its content unless told otherwise.

    Args:
        request (Request): FastAPI request (provides app.state.ingest_service).
        body (ChunkIngestRequest): Chunk content and access metadata.
        _ (None): Auth dependency result (unused).

    Returns:
        ChunkIngestResponse: ID of the stored chunk and whether it was embedded.

    Raises:
        HTTPException: 409 if a chunk with the given ID already exists.
    """
    fields = body.model_dump(exclude={"id", "embed"})
    if body.id:
        fields["id"] = str(body.id)
    chunk = Chunk(**fields)

    ingest_service = request.app.state.ingest_service
    try:
        stored = await ingest_service.do_ingest(chunk, embed=body.embed)
    except ChunkConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return ChunkIngestResponse(id=stored.id, embedded=stored.has_embedding())
