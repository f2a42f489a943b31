"""Build the model resolution index from a configuration record."""

import logging
import uuid
from types import MappingProxyType

from model_gateway.backends.defaults import SERVICE_TIMEOUT, default_models_for
from model_gateway.models.config import GatewayConfig, ProviderEntry
from model_gateway.models.routing import Binding, ModelIndex

logger = logging.getLogger(__name__)


def normalize_entry(service_name: str, entry: ProviderEntry) -> ProviderEntry:
    """Return a copy of ``entry`` with default models and timeout filled in."""
    update: dict = {}

    if not entry.models:
        defaults = default_models_for(service_name, entry.provider)
        if defaults:
            logger.info(
                "Service %s: using default models %s", service_name, defaults
            )
            update["models"] = defaults

    if entry.timeout <= 0:
        update["timeout"] = SERVICE_TIMEOUT

    return entry.model_copy(update=update) if update else entry


def build_model_index(config: GatewayConfig) -> ModelIndex:
    """
    Map every externally visible model name to its candidate bindings.

    Disabled entries contribute nothing. Redirect keys of an entry receive the
    same bindings as the models they alias; the redirect target is dropped
    from the display set only.

    Returns:
        A ModelIndex holding the bindings and the display set of model names.
    """
    index: dict[str, list[Binding]] = {}
    supported: set[str] = set()

    for service_name, entries in config.services.items():
        for entry in entries:
            if not entry.enabled:
                continue

            entry = normalize_entry(service_name, entry)
            logger.debug(
                "Service %s models=%s embedding_models=%s timeout=%s limit=%s",
                service_name,
                entry.models,
                entry.embedding_models,
                entry.timeout,
                entry.limit.model_dump(),
            )

            for model in entry.models:
                binding = Binding(
                    service_name=service_name,
                    service=entry,
                    service_id=str(uuid.uuid4()),
                    namespace=entry.provider_namespace,
                )
                index.setdefault(model, []).append(binding)
                supported.add(model)

                for alias, target in entry.model_redirect.items():
                    index.setdefault(alias, []).append(binding)
                    supported.add(alias)
                    supported.discard(target)

            for model in entry.embedding_models:
                # Embedding bindings carry no namespace tag.
                binding = Binding(
                    service_name=service_name,
                    service=entry,
                    service_id=str(uuid.uuid4()),
                )
                index.setdefault(model, []).append(binding)
                for alias in entry.model_redirect:
                    index.setdefault(alias, []).append(binding)

    return ModelIndex(
        bindings=MappingProxyType(
            {model: tuple(bindings) for model, bindings in index.items()}
        ),
        supported_models=frozenset(supported),
    )
