"""Exception hierarchy for configuration loading and model resolution."""


class GatewayError(Exception):
    """Base class for all gateway core errors."""

    pass


class ConfigError(GatewayError):
    """Raised when a configuration file cannot be loaded."""

    pass


class PathResolutionError(ConfigError):
    """Raised when a configuration path cannot be resolved."""

    pass


class FileNotReadableTimeout(ConfigError):
    """Raised when a configuration file does not become readable in time."""

    def __init__(self, path: str, waited: float) -> None:
        self.path = path
        self.waited = waited
        super().__init__(f"timeout waiting for file to be readable: {path}")


class UnsupportedFormat(ConfigError):
    """Raised for configuration files with an unknown extension."""

    def __init__(self, extension: str) -> None:
        self.extension = extension
        super().__init__(f"unsupported config type: {extension or 'no extension'}")


class DecodeSyntaxError(ConfigError):
    """Raised when the document is not valid JSON/YAML.

    ``line`` and ``column`` are 1-based; ``context`` is the source text
    around the offending position.
    """

    def __init__(self, message: str, line: int, column: int, context: str = "") -> None:
        self.line = line
        self.column = column
        self.context = context
        super().__init__(f"{message} (line {line}, column {column})")


class DecodeSchemaError(ConfigError):
    """Raised when the document does not match the configuration schema."""

    pass


class StoreNotInitialized(ConfigError):
    """Raised when the store is used before a configuration was loaded."""

    pass


class ResolutionError(GatewayError):
    """Base class for request-time resolution failures."""

    pass


class ModelNotFound(ResolutionError):
    """Raised when no binding exists for a model name."""

    def __init__(self, model: str) -> None:
        self.model = model
        super().__init__(f"model {model} not found in the configuration")


class NoEnabledBindingInNamespace(ResolutionError):
    """Raised when a model exists but nothing serves it in the namespace."""

    def __init__(self, model: str, namespace: str) -> None:
        self.model = model
        self.namespace = namespace
        super().__init__(
            f"no enabled model {model} found in namespace '{namespace}'"
        )


class AuthorizationError(ResolutionError):
    """Base class for API key failures."""

    pass


class InvalidAPIKey(AuthorizationError):
    def __init__(self) -> None:
        super().__init__("Forbidden: invalid API key")


class ModelNotAuthorizedForKey(AuthorizationError):
    def __init__(self, model: str) -> None:
        self.model = model
        super().__init__("Forbidden: model not supported")
