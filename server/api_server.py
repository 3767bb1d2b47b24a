"""FastAPI application entry point for the access-controlled query service."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from server.core.QueryService import QueryService
from server.routers.BackfillRouter import router as backfill_router
from server.routers.ChunkRouter import router as chunk_router
from server.routers.QueryRouter import router as query_router
from services.chunk_backfill.BackfillService import BackfillService
from services.chunk_ingest.IngestService import IngestService
from shared.access.AccessPolicyEvaluator import AccessPolicyEvaluator
from shared.access.ClaimsMapper import ClaimsMapper
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.errors import CollaboratorError
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.store.ChunkStoreInterface import ChunkStoreInterface
from shared.clients.store.ChunkStoreManager import ChunkStoreManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.retrieval.RetrievalRanker import RetrievalRanker

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)
    settings = app.state.helper_config.get_retrieval_settings()

    store_client = ChunkStoreManager(helper_config=app.state.helper_config).get_client()
    embed_client = EmbedClientManager(helper_config=app.state.helper_config).get_client()
    llm_client = LLMClientManager(helper_config=app.state.helper_config).get_client()
    clients = [store_client, embed_client, llm_client]

    logging.info("Booting all clients...")
    for client in clients:
        await client.boot()
    logging.info("All clients booted successfully.")

    try:
        await check_connections(store_client, embed_client, llm_client)
        await ensure_collection(store_client, embed_client)

        app.state.claims_mapper = ClaimsMapper(helper_config=app.state.helper_config)
        app.state.query_service = QueryService(
            helper_config=app.state.helper_config,
            evaluator=AccessPolicyEvaluator(helper_config=app.state.helper_config, settings=settings),
            ranker=RetrievalRanker(helper_config=app.state.helper_config, settings=settings),
            store_client=store_client,
            embed_client=embed_client,
            llm_client=llm_client,
        )
        app.state.backfill_service = BackfillService(
            helper_config=app.state.helper_config,
            settings=settings,
            store_client=store_client,
            embed_client=embed_client,
        )
        app.state.ingest_service = IngestService(
            helper_config=app.state.helper_config,
            store_client=store_client,
            embed_client=embed_client,
        )

        # while the app is running...
        yield
    finally:
        # when the app shuts down, close all client connections
        logging.info("Shutting down, closing all clients...")
        for client in clients:
            await client.close()
        logging.info("All clients closed.")


app = FastAPI(
    title="access_rag",
    description=(
        "Retrieval-augmented query service over a multi-tenant chunk corpus. "
        "Answers are grounded only in chunks the caller (and its delegated actor) "
        "is entitled to see. Queries are served via POST /query, new chunks are "
        "ingested via POST /chunks and missing embeddings are filled via POST /backfill."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(query_router)
app.include_router(chunk_router)
app.include_router(backfill_router)


@app.exception_handler(CollaboratorError)
async def collaborator_error_handler(request: Request, exc: CollaboratorError) -> JSONResponse:
    """Map backend failures to 502 without leaking backend details to the caller."""
    request.app.state.logging.error("Backend failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": "An upstream service is unavailable. Please retry."})


async def check_connections(
    store_client: ChunkStoreInterface,
    embed_client: EmbedClientInterface,
    llm_client: LLMClientInterface,
) -> None:
    """Check connectivity to all configured backends on startup.

    The store and embedding backends are fatal: without them no query can be
    answered. An unreachable LLM only logs a warning, backfill and ingest keep working.

    Raises:
        CollaboratorError: If the store or the embedding backend is not reachable.
    """
    for client in (store_client, embed_client):
        result: httpx.Response = await client.do_healthcheck()
        if not result.is_success:
            raise CollaboratorError(
                f"{client.get_client_type().upper()} client '{client.__class__.__name__}' is not reachable "
                f"(status {result.status_code}). Cannot serve queries."
            )

    try:
        result = await llm_client.do_healthcheck()
    except CollaboratorError as exc:
        logging.warning(
            "LLM client '%s' is not reachable (%s). Queries will fail until it is.",
            llm_client.__class__.__name__,
            exc,
        )
        return
    if not result.is_success:
        logging.warning(
            "LLM client '%s' is not reachable (status %d). Queries will fail until it is.",
            llm_client.__class__.__name__,
            result.status_code,
        )


async def ensure_collection(store_client: ChunkStoreInterface, embed_client: EmbedClientInterface) -> None:
    """Create the chunk collection sized for the embedding model, if it does not exist yet."""
    if await store_client.do_existence_check():
        logging.info("Chunk collection already exists.")
        return
    vector_size, distance = await embed_client.do_fetch_embedding_vector_size()
    await store_client.do_create_collection(vector_size=vector_size, distance=distance)


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting access_rag API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
