"""Resolved routing targets and the model resolution index."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict

from model_gateway.models.config import Limit, ProviderEntry


class Binding(BaseModel):
    """A concrete routing target built from one provider entry for one model.

    Bindings are never mutated; a reload builds a fresh set with new
    ``service_id`` values.
    """

    model_config = ConfigDict(frozen=True)

    service_name: str
    service: ProviderEntry
    service_id: str
    namespace: str = ""

    @property
    def provider(self) -> str:
        return self.service.provider

    @property
    def enabled(self) -> bool:
        return self.service.enabled

    @property
    def provider_namespace(self) -> str:
        return self.service.provider_namespace

    @property
    def model_map(self) -> dict[str, str]:
        return self.service.model_map

    @property
    def model_redirect(self) -> dict[str, str]:
        return self.service.model_redirect

    @property
    def use_proxy(self) -> bool | None:
        return self.service.use_proxy

    @property
    def timeout(self) -> int:
        return self.service.timeout

    @property
    def server_url(self) -> str:
        return self.service.server_url

    @property
    def credentials(self) -> dict[str, Any]:
        return self.service.credentials

    @property
    def credential_list(self) -> list[dict[str, Any]]:
        return self.service.credential_list

    @property
    def limit(self) -> Limit:
        return self.service.limit


@dataclass(frozen=True)
class ModelIndex:
    """Model name to candidate bindings, plus the display set of model names."""

    bindings: Mapping[str, tuple[Binding, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    supported_models: frozenset[str] = frozenset()

    def __contains__(self, model: str) -> bool:
        return model in self.bindings

    def get(self, model: str) -> tuple[Binding, ...]:
        return self.bindings.get(model, ())

    def model_names(self) -> list[str]:
        return sorted(self.bindings)
