from pydantic import BaseModel, Field


class EnvConfig(BaseModel):
    """
    Represents a single configuration parameter required for a client.

    Attributes:
        env_key (str): The raw key of the environment variable, without client type and engine prefix.
        val_type (str): The expected type of the value. Supported types are "string", "number", "bool", and "list".
        default (str | int | float | bool | list | None): Default if the variable is not set. None marks the variable as required.
    """

    env_key: str
    val_type: str
    default: str | int | float | bool | list | None = None


class RetrievalSettings(BaseModel):
    """
    Tunables of the access and ranking pipeline, passed explicitly into the
    evaluator, the ranker and the services.

    Attributes:
        required_scope (str): Capability string a principal must carry.
        minimum_score (float): Chunks scoring below this are discarded.
        top_k (int): Maximum number of chunks handed to the LLM as context.
        backfill_concurrency (int): Maximum parallel embedding calls during backfill.
    """

    required_scope: str = "Files.Read"
    minimum_score: float = 0.3
    top_k: int = Field(default=5, ge=1)
    backfill_concurrency: int = Field(default=5, ge=1)
