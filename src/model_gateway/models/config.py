"""Configuration models for the model gateway."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

PROXY_STRATEGY_FORCE_ALL = "force-all"
PROXY_STRATEGY_ALL = "all"
PROXY_STRATEGY_DEFAULT = "default"
PROXY_STRATEGY_DISABLED = "disabled"

_STRATEGY_SPELLINGS = {
    "force_all": PROXY_STRATEGY_FORCE_ALL,
    "forceall": PROXY_STRATEGY_FORCE_ALL,
}


def _number_to_str(value: Any) -> Any:
    # YAML/JSON may give a bare number for a string setting
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class _Record(BaseModel):
    """Immutable record; unknown keys in the document are ignored."""

    model_config = ConfigDict(
        frozen=True, extra="ignore", populate_by_name=True, protected_namespaces=()
    )


class Limit(_Record):
    """Advisory rate and concurrency caps for a provider entry."""

    qps: float = 0
    qpm: float = 0
    rpm: float = 0
    concurrency: float = 0
    timeout: int = 0


class Range(_Record):
    min: float = 0
    max: float = 0


class ModelParams(_Record):
    """Allowed sampling parameter ranges for one model."""

    temperature_range: Range = Field(default_factory=Range, alias="temperatureRange")
    top_p_range: Range = Field(default_factory=Range, alias="topPRange")
    max_tokens: int = Field(default=0, alias="maxTokens")


class ProviderEntry(_Record):
    """One configured backend offering within a provider group."""

    provider: str = ""
    models: list[str] = Field(default_factory=list)
    embedding_models: list[str] = Field(default_factory=list)
    embedding_limit: Limit = Field(default_factory=Limit)
    reasoning_models: dict[str, str] = Field(default_factory=dict)
    enabled: bool = False
    credentials: dict[str, Any] = Field(default_factory=dict)
    credential_list: list[dict[str, Any]] = Field(default_factory=list)
    server_url: str = ""
    model_map: dict[str, str] = Field(default_factory=dict)
    model_redirect: dict[str, str] = Field(default_factory=dict)
    limit: Limit = Field(default_factory=Limit)
    # None means "not set"; the global proxy strategy decides.
    use_proxy: bool | None = None
    timeout: int = 0
    provider_namespace: str = ""


class ProxyConf(_Record):
    """Outbound proxy settings."""

    # Empty when unset; no binding is proxied unless a strategy is named.
    strategy: str = ""
    type: str = ""
    http_proxy: str = ""
    https_proxy: str = ""
    socks5_proxy: str = ""
    timeout: int = 0

    @field_validator("strategy", mode="before")
    @classmethod
    def normalize_strategy(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            return _STRATEGY_SPELLINGS.get(value, value)
        return value


class Translation(_Record):
    enable: bool = False
    prompt_template: str = Field(
        default="",
        validation_alias=AliasChoices("prompt_template", "promptTemplate"),
    )
    retry: int = 0
    concurrency: int = 0


class APIKeyConfig(_Record):
    """An access key and the models it may use, per provider group."""

    api_key: str
    supported_models: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("api_key", mode="before")
    @classmethod
    def coerce_key(cls, value: Any) -> Any:
        return _number_to_str(value)


class GatewayConfig(_Record):
    """Root configuration document."""

    server_port: str = ""
    debug: bool = False
    log_level: str = ""
    proxy: ProxyConf = Field(default_factory=ProxyConf)
    api_key: str = ""
    load_balancing: str = ""
    multi_content_models: list[str] = Field(default_factory=list)
    model_redirect: dict[str, str] = Field(default_factory=dict)
    params_range: dict[str, ModelParams] = Field(default_factory=dict)
    services: dict[str, list[ProviderEntry]] = Field(default_factory=dict)
    translation: Translation = Field(default_factory=Translation)
    enable_web: bool = False
    api_keys: list[APIKeyConfig] = Field(default_factory=list)

    @field_validator("server_port", "api_key", mode="before")
    @classmethod
    def coerce_scalars(cls, value: Any) -> Any:
        return _number_to_str(value)
