"""Pydantic model for the outcome of an embedding backfill run."""

from pydantic import BaseModel


class BackfillReport(BaseModel):
    """Counts of a backfill run.

    Attributes:
        total:      Chunks in the corpus.
        embedded:   Chunks that received an embedding in this run.
        skipped:    Chunks that already carried an embedding.
        failed:     Chunks whose embedding failed; they are retried on the next run.
        failed_ids: IDs of the failed chunks.
    """

    total: int = 0
    embedded: int = 0
    skipped: int = 0
    failed: int = 0
    failed_ids: list[str] = []
