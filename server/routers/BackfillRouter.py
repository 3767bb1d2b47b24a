from fastapi import APIRouter, Depends, Request

from server.dependencies.auth import verify_api_key
from server.models.responses import BackfillResponse

router = APIRouter(prefix="/backfill", tags=["backfill"])


@router.post("")
async def backfill_embeddings(
    request: Request,
    _: None = Depends(verify_api_key),
) -> BackfillResponse:
    """Compute embeddings for all stored chunks that have none yet.

    Useful after chunks were migrated into the store without embeddings.
    Idempotent: a second call with no new chunks embeds nothing.

    Args:
        request (Request): FastAPI request (provides app.state.backfill_service).
        _ (None): Auth dependency result (unused).

    Returns:
        BackfillResponse: "completed", or "partial" when some chunks failed.
    """
    backfill_service = request.app.state.backfill_service
    report = await backfill_service.do_backfill()
    return BackfillResponse(status="partial" if report.failed else "completed", report=report)
