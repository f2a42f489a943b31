"""Factory for HTTP clients that honour the proxy routing decision."""

import httpx

from model_gateway.backends.router import should_use_proxy
from model_gateway.models.config import ProxyConf
from model_gateway.models.routing import Binding
from model_gateway.store import Snapshot


def proxy_url(proxy: ProxyConf) -> str | None:
    """Return the proxy URL for the configured proxy type, if any."""
    urls = {
        "http": proxy.http_proxy,
        "https": proxy.https_proxy,
        "socks5": proxy.socks5_proxy,
    }
    return urls.get(proxy.type.lower()) or None


def create_http_client(binding: Binding, snapshot: Snapshot) -> httpx.AsyncClient:
    """
    Create an AsyncClient for requests dispatched to ``binding``.

    Args:
        binding: The resolved routing target; its timeout is used.
        snapshot: The configuration version the binding was resolved from.

    Returns:
        Configured httpx.AsyncClient; proxied when the proxy strategy says so
        and a proxy URL is configured.
    """
    kwargs: dict = {"timeout": httpx.Timeout(float(binding.timeout))}

    url = proxy_url(snapshot.proxy)
    if url and should_use_proxy(snapshot.proxy, binding):
        kwargs["proxy"] = url

    return httpx.AsyncClient(**kwargs)
