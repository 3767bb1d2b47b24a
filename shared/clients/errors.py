class CollaboratorError(Exception):
    """Raised when an external backend (store, embedding, generation) fails.

    Recoverable: callers may retry the whole operation.
    """


class ChunkConflictError(Exception):
    """Raised when a chunk is ingested under an ID that is already stored.

    Stored chunks are never replaced; the caller must pick a new ID.
    """
