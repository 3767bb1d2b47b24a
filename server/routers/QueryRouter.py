from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import get_identity, verify_api_key
from server.models.requests import QueryRequest
from server.models.responses import QueryResponse
from shared.models.access import Actor, Principal

router = APIRouter(prefix="/query", tags=["query"])


@router.post("")
async def query_llm(
    request: Request,
    body: QueryRequest,
    _: None = Depends(verify_api_key),
    identity: tuple[Principal, Actor | None] = Depends(get_identity),
) -> QueryResponse:
    """Answer a natural language query from the chunks the caller may see.

    Args:
        request (Request): FastAPI request (provides app.state.query_service).
        body (QueryRequest): JSON body with the query string.
        _ (None): Auth dependency result (unused).
        identity (tuple[Principal, Actor | None]): Caller identity from the forwarded claims.

    Returns:
        QueryResponse: The answer, or a generic message when no accessible,
            relevant data exists.

    Raises:
        HTTPException: 400 if the query is blank.
    """
    if not body.query or not body.query.strip():
        raise HTTPException(status_code=400, detail="Query is required.")

    principal, actor = identity
    query_service = request.app.state.query_service
    return await query_service.do_query(principal, actor, body.query)
