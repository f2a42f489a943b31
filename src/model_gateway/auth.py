"""API key authorization against the configured key table."""

import logging
from collections.abc import Mapping

from fastapi import Request, Response
from starlette.responses import JSONResponse

from model_gateway.backends.defaults import KEYNAME_ALL
from model_gateway.errors import (
    AuthorizationError,
    InvalidAPIKey,
    ModelNotAuthorizedForKey,
)
from model_gateway.models.config import APIKeyConfig
from model_gateway.store import ConfigStore, Snapshot

logger = logging.getLogger(__name__)

OPEN_PATHS = frozenset({"/health"})


def validate_key(
    api_keys: Mapping[str, APIKeyConfig], api_key: str | None, model: str | None
) -> None:
    """
    Check a key against the key table.

    With no configured keys every request is allowed. ``model=None`` only
    checks that the key exists.

    Raises:
        InvalidAPIKey: If keys are configured and ``api_key`` is not one of them.
        ModelNotAuthorizedForKey: If the key may not use ``model``.
    """
    if not api_keys:
        return

    key_config = api_keys.get(api_key or "")
    if key_config is None:
        logger.warning("Rejected request: invalid API key")
        raise InvalidAPIKey()

    if model is None:
        return

    for service, models in key_config.supported_models.items():
        for allowed in models:
            if allowed == KEYNAME_ALL or allowed == model:
                logger.debug(
                    "Key authorized for model %s via service %s", model, service
                )
                return

    logger.warning("Rejected request: model %s not supported for key", model)
    raise ModelNotAuthorizedForKey(model)


def authorize_key(snapshot: Snapshot, api_key: str | None, model: str) -> tuple[bool, str]:
    """Return ``(allowed, reason)``; reason is empty when allowed."""
    try:
        validate_key(snapshot.api_keys, api_key, model)
    except AuthorizationError as e:
        return False, str(e)
    return True, ""


def get_api_key(request: Request) -> str | None:
    """Extract API key from request headers."""
    api_key = request.headers.get("x-api-key")
    if api_key:
        return api_key

    # Try Authorization Bearer token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]

    return None


def make_auth_error_response(message: str) -> JSONResponse:
    """Create an authentication error response."""
    return JSONResponse(
        status_code=401,
        content={
            "type": "error",
            "error": {
                "type": "authentication_error",
                "message": message,
            },
        },
    )


class APIKeyAuth:
    """Reject requests carrying a key that is not in the current key table."""

    def __init__(self, store: ConfigStore):
        self.store = store

    async def __call__(self, request: Request, call_next) -> Response:
        if request.url.path in OPEN_PATHS:
            return await call_next(request)

        # Key table of the snapshot live at request time
        snapshot = self.store.snapshot
        try:
            validate_key(snapshot.api_keys, get_api_key(request), None)
        except AuthorizationError as e:
            return make_auth_error_response(str(e))

        return await call_next(request)
