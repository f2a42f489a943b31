"""Configuration loading: path resolution, format dispatch, env var substitution."""

import json
import logging
import os
import re
import time
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from model_gateway.errors import (
    DecodeSchemaError,
    DecodeSyntaxError,
    FileNotReadableTimeout,
    PathResolutionError,
    UnsupportedFormat,
)
from model_gateway.models.config import GatewayConfig

logger = logging.getLogger(__name__)

ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

FORMAT_JSON = "json"
FORMAT_YAML = "yaml"

_EXTENSIONS = {
    ".json": FORMAT_JSON,
    ".yml": FORMAT_YAML,
    ".yaml": FORMAT_YAML,
}

CONFIG_DIR = "config"
READABLE_WAIT_SECONDS = 30.0
READABLE_POLL_SECONDS = 0.1


def substitute_env_vars(value: str) -> str:
    """Replace ${VAR} patterns with environment variable values."""
    if not isinstance(value, str):
        return value

    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise DecodeSchemaError(f"Environment variable '{var_name}' not set")
        return env_value

    return ENV_VAR_PATTERN.sub(replace_match, value)


def substitute_env_vars_recursive(obj: Any) -> Any:
    """Recursively substitute env vars in a nested structure."""
    if isinstance(obj, dict):
        return {k: substitute_env_vars_recursive(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [substitute_env_vars_recursive(item) for item in obj]
    elif isinstance(obj, str):
        return substitute_env_vars(obj)
    return obj


def resolve_config_path(name: str | Path) -> Path:
    """
    Resolve a configuration name to an absolute path.

    A name that does not exist relative to the working directory is retried
    under ``config/``. When neither exists the first candidate is returned
    and the readability wait reports the failure.
    """
    if not str(name).strip():
        raise PathResolutionError("empty configuration path")

    try:
        path = Path(name).expanduser().resolve()
    except (OSError, RuntimeError) as e:
        raise PathResolutionError(f"cannot resolve config path {name}: {e}") from e

    if path.exists():
        return path

    logger.info("Config %s does not exist, trying %s/", path, CONFIG_DIR)
    fallback = Path(CONFIG_DIR, name).resolve()
    if fallback.exists():
        return fallback
    return path


def wait_for_file_readable(
    path: str | Path,
    max_wait: float = READABLE_WAIT_SECONDS,
    interval: float = READABLE_POLL_SECONDS,
) -> None:
    """Block until ``path`` can be opened for reading or ``max_wait`` elapses."""
    deadline = time.monotonic() + max_wait
    while True:
        try:
            with open(path, "rb"):
                return
        except OSError:
            pass
        if time.monotonic() >= deadline:
            raise FileNotReadableTimeout(str(path), max_wait)
        time.sleep(interval)


def detect_format(path: str | Path) -> str:
    """Pick the decoder from the file extension."""
    ext = Path(path).suffix
    fmt = _EXTENSIONS.get(ext.lower())
    if fmt is None:
        raise UnsupportedFormat(ext)
    return fmt


def find_line_and_column(text: str, offset: int) -> tuple[int, int]:
    """Return the 1-based line and column of a character offset."""
    offset = max(0, min(offset, len(text)))
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return line, column


def error_context(text: str, offset: int, radius: int = 20) -> str:
    """Return the text surrounding ``offset`` on a single line."""
    start = max(0, offset - radius)
    end = min(len(text), offset + radius)
    return text[start:end].replace("\n", " ")


def _parse(text: str, fmt: str) -> Any:
    if fmt == FORMAT_JSON:
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise DecodeSyntaxError(
                f"JSON syntax error: {e.msg}",
                e.lineno,
                e.colno,
                error_context(text, e.pos),
            ) from e

    try:
        return yaml.safe_load(text)
    except yaml.MarkedYAMLError as e:
        mark = e.problem_mark or e.context_mark
        if mark is None:
            raise DecodeSyntaxError(f"YAML syntax error: {e}", 0, 0) from e
        raise DecodeSyntaxError(
            f"YAML syntax error: {e.problem or e}",
            mark.line + 1,
            mark.column + 1,
            error_context(text, mark.index),
        ) from e
    except yaml.YAMLError as e:
        raise DecodeSyntaxError(f"YAML syntax error: {e}", 0, 0) from e


def decode_config(data: bytes | str, fmt: str) -> GatewayConfig:
    """
    Decode a configuration document.

    Raises:
        DecodeSyntaxError: If the document is not well-formed.
        DecodeSchemaError: If it does not match the configuration schema.
    """
    if fmt not in (FORMAT_JSON, FORMAT_YAML):
        raise UnsupportedFormat(fmt)

    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise DecodeSyntaxError(
                f"config is not valid UTF-8: {e.reason}", 0, 0
            ) from e
    else:
        text = data

    raw_config = _parse(text, fmt)
    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise DecodeSchemaError(
            f"config root must be a mapping, got {type(raw_config).__name__}"
        )

    # Substitute environment variables
    config_data = substitute_env_vars_recursive(raw_config)

    try:
        return GatewayConfig.model_validate(config_data)
    except ValidationError as e:
        raise DecodeSchemaError(f"invalid configuration: {e}") from e


def load_config(path: str | Path, fmt: str | None = None) -> GatewayConfig:
    """Read and decode a configuration file."""
    fmt = fmt or detect_format(path)
    with open(path, "rb") as f:
        data = f.read()
    try:
        return decode_config(data, fmt)
    except DecodeSyntaxError as e:
        logger.error("Config %s: %s; context: %s", path, e, e.context)
        raise
