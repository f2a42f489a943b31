"""Pydantic models for the model gateway."""

from model_gateway.models.config import (
    APIKeyConfig,
    GatewayConfig,
    Limit,
    ModelParams,
    ProviderEntry,
    ProxyConf,
    Range,
    Translation,
)
from model_gateway.models.routing import Binding, ModelIndex

__all__ = [
    "APIKeyConfig",
    "Binding",
    "GatewayConfig",
    "Limit",
    "ModelIndex",
    "ModelParams",
    "ProviderEntry",
    "ProxyConf",
    "Range",
    "Translation",
]
