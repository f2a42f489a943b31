"""Route model names to backend bindings."""

import logging

from model_gateway.backends.balancer import LoadBalancer, get_default_balancer
from model_gateway.backends.defaults import KEYNAME_ALL, KEYNAME_RANDOM
from model_gateway.errors import ModelNotFound, NoEnabledBindingInNamespace
from model_gateway.models.config import (
    PROXY_STRATEGY_ALL,
    PROXY_STRATEGY_DEFAULT,
    PROXY_STRATEGY_DISABLED,
    PROXY_STRATEGY_FORCE_ALL,
    ProxyConf,
)
from model_gateway.models.routing import Binding
from model_gateway.store import Snapshot

logger = logging.getLogger(__name__)


def resolve_model(
    snapshot: Snapshot,
    model: str,
    namespace: str = "",
    balancer: LoadBalancer | None = None,
) -> Binding:
    """
    Pick an enabled binding for a model within a namespace.

    Raises:
        ModelNotFound: If no binding exists for the model.
        NoEnabledBindingInNamespace: If none of its bindings is enabled and
            tagged with ``namespace``.
    """
    bindings = snapshot.index.get(model)
    if not bindings:
        raise ModelNotFound(model)

    candidates = [
        b for b in bindings if b.enabled and b.provider_namespace == namespace
    ]
    if not candidates:
        raise NoEnabledBindingInNamespace(model, namespace)

    balancer = balancer or get_default_balancer()
    index = balancer.select_index(snapshot.load_balancing, model, len(candidates))
    return candidates[index]


def resolve_random_binding(
    snapshot: Snapshot, balancer: LoadBalancer | None = None
) -> Binding:
    """Pick any model, then any of its bindings, ignoring namespaces."""
    models = snapshot.index.model_names()
    if not models:
        raise ModelNotFound(KEYNAME_RANDOM)

    balancer = balancer or get_default_balancer()
    model = models[
        balancer.select_index(snapshot.load_balancing, KEYNAME_RANDOM, len(models))
    ]
    bindings = snapshot.index.get(model)
    return bindings[
        balancer.select_index(snapshot.load_balancing, model, len(bindings))
    ]


def resolve_random_model(
    snapshot: Snapshot, balancer: LoadBalancer | None = None
) -> tuple[Binding, str]:
    """Pick a random binding plus one of the plain models its entry serves."""
    balancer = balancer or get_default_balancer()
    binding = resolve_random_binding(snapshot, balancer)
    models = binding.service.models or binding.service.embedding_models
    if not models:
        raise ModelNotFound(KEYNAME_RANDOM)
    index = balancer.select_index(KEYNAME_RANDOM, binding.service_id, len(models))
    return binding, models[index]


def apply_model_rename(binding: Binding, model: str) -> str:
    """Map a requested model through the binding's ``model_map``."""
    mapped = binding.model_map.get(model)
    if mapped is not None:
        logger.info("Model map found: %s -> %s", model, mapped)
        return mapped
    logger.debug("No model map found for %s", model)
    return model


def apply_model_redirect(binding: Binding, model: str) -> str:
    """Map a requested model through the binding's ``model_redirect``."""
    redirected = binding.model_redirect.get(model)
    if redirected is not None:
        logger.info("Model redirect found: %s -> %s", model, redirected)
        return redirected
    logger.debug("No model redirect found for %s", model)
    return model


def apply_global_redirect(snapshot: Snapshot, model: str) -> str:
    """
    Map a requested model through the global redirect table.

    A ``*`` key redirects every model and wins over a specific key. A ``*``
    value under it means "any model" and is returned as ``random``.
    """
    redirects = snapshot.model_redirect

    redirected = redirects.get(KEYNAME_ALL)
    if redirected is not None:
        if redirected == KEYNAME_ALL:
            redirected = KEYNAME_RANDOM
        logger.info("Global redirect (all models): %s -> %s", model, redirected)
        return redirected

    redirected = redirects.get(model)
    if redirected is not None:
        logger.info("Global redirect found: %s -> %s", model, redirected)
        return redirected

    logger.debug("No global redirect found for %s", model)
    return model


def should_use_proxy(proxy: ProxyConf, binding: Binding) -> bool:
    """Decide whether requests for a binding go through the outbound proxy."""
    strategy = proxy.strategy
    override = binding.use_proxy

    if strategy == PROXY_STRATEGY_FORCE_ALL:
        return True
    if strategy == PROXY_STRATEGY_ALL:
        return override is not False
    if strategy == PROXY_STRATEGY_DEFAULT:
        return override is True
    if strategy == PROXY_STRATEGY_DISABLED:
        return False
    return False


def is_multi_content_capable(snapshot: Snapshot, model: str) -> bool:
    """Whether a model accepts multi-part (e.g. image) message content."""
    for pattern in snapshot.multi_content_models:
        if pattern.endswith("*"):
            if model.startswith(pattern[:-1]):
                return True
        elif pattern == model:
            return True
    return False
