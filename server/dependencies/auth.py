import json

from fastapi import Header, HTTPException, Request

from shared.models.access import Actor, Principal

CLAIMS_HEADER = "X-Auth-Claims"


async def verify_api_key(request: Request, x_api_key: str | None = Header(default=None)) -> None:
    """Verify the X-Api-Key header against the configured API key.

    Args:
        request (Request): The FastAPI request object (provides app.state).
        x_api_key (str | None): The value of the X-Api-Key header.

    Raises:
        HTTPException: 401 if the key is missing or does not match.
    """
    helper_config = request.app.state.helper_config
    expected_key = helper_config.get_string_val("APP_API_KEY")
    if not x_api_key or x_api_key != expected_key:
        raise HTTPException(status_code=401, detail="Invalid or missing API key.")


async def get_identity(
    request: Request,
    x_auth_claims: str | None = Header(default=None),
) -> tuple[Principal, Actor | None]:
    """Build the Principal/Actor pair from the claims forwarded by the gateway.

    The upstream gateway validates the bearer token and forwards its decoded
    claims as a JSON object in the X-Auth-Claims header.

    Args:
        request (Request): The FastAPI request object (provides app.state.claims_mapper).
        x_auth_claims (str | None): JSON-encoded claim dictionary.

    Returns:
        tuple[Principal, Actor | None]: The typed identity of the caller.

    Raises:
        HTTPException: 401 if the header is missing or is not a JSON object.
    """
    if not x_auth_claims:
        raise HTTPException(status_code=401, detail="Missing authentication claims.")
    try:
        claims = json.loads(x_auth_claims)
    except json.JSONDecodeError:
        claims = None
    if not isinstance(claims, dict):
        raise HTTPException(status_code=401, detail="Malformed authentication claims.")

    mapper = request.app.state.claims_mapper
    return mapper.to_principal(claims), mapper.to_actor(claims)
