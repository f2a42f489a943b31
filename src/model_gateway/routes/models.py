"""Model listing endpoint."""

from typing import Any

from fastapi import APIRouter

from model_gateway.store import ConfigStore


def create_models_router(store: ConfigStore) -> APIRouter:
    """Create the models router bound to a configuration store."""
    router = APIRouter()

    @router.get("/v1/models")
    async def list_models() -> dict[str, Any]:
        """Handle GET /v1/models with the display set of the live snapshot."""
        snapshot = store.snapshot
        data = []
        for model in sorted(snapshot.index.supported_models):
            bindings = snapshot.index.get(model)
            data.append(
                {
                    "id": model,
                    "object": "model",
                    "created": int(snapshot.loaded_at),
                    "owned_by": bindings[0].service_name if bindings else "",
                }
            )
        return {"object": "list", "data": data}

    return router
