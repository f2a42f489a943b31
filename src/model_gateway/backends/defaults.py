"""Built-in defaults applied when the configuration leaves a value unset."""

# Seconds; applied to provider entries declaring a non-positive timeout.
SERVICE_TIMEOUT = 60

DEFAULT_SERVER_PORT = ":9090"
DEFAULT_LOAD_BALANCING = "random"

KEYNAME_ALL = "*"
KEYNAME_RANDOM = "random"

BUILTIN_MULTI_CONTENT_MODELS = (
    "gpt-4o",
    "gpt-4-turbo",
    "glm-4v",
    "gemini-*",
    "yi-vision",
    "gpt-4o*",
)

DEFAULT_SUPPORT_MODELS: dict[str, list[str]] = {
    "xinghuo": [
        "spark-lite",
        "spark-pro",
        "spark-pro-128k",
        "spark-max",
        "spark-max-32k",
        "spark4.0-ultra",
    ],
    "qianfan": [
        "ERNIE-Speed-8K",
        "ERNIE-Speed-128K",
        "ERNIE-Lite-8K",
        "ERNIE-Tiny-8K",
        "ERNIE-4.0-8K",
    ],
    "hunyuan": ["hunyuan-lite", "hunyuan-standard", "hunyuan-pro"],
    "zhipu": [
        "glm-4",
        "glm-4-air",
        "glm-4-airx",
        "glm-4-flash",
        "glm-4v",
        "glm-3-turbo",
    ],
    "deepseek": ["deepseek-chat", "deepseek-coder", "deepseek-reasoner"],
    "minimax": ["abab6.5-chat", "abab6.5s-chat", "abab5.5-chat"],
    "groq": [
        "llama3-8b-8192",
        "llama3-70b-8192",
        "mixtral-8x7b-32768",
        "gemma-7b-it",
    ],
    "gemini": ["gemini-1.5-flash", "gemini-1.5-pro"],
    "ollama": ["llama3"],
}


def default_models_for(service_name: str, provider: str = "") -> list[str]:
    """Return the default model list for a provider group or provider kind."""
    if service_name in DEFAULT_SUPPORT_MODELS:
        return list(DEFAULT_SUPPORT_MODELS[service_name])
    return list(DEFAULT_SUPPORT_MODELS.get(provider, []))
