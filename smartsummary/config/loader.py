"""YAML + environment configuration loader for Smart Summary."""
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from smartsummary.config.schema import SmartSummaryConfig

# Environment variable -> dotted config path
ENV_OVERRIDES = {
    "OPENROUTER_API_KEY": "llm.openrouter.api_key",
    "OPENROUTER_DEFAULT_MODEL": "llm.openrouter.default_model",
    "OPENAI_API_KEY": "llm.openai.api_key",
    "OPENAI_DEFAULT_MODEL": "llm.openai.default_model",
    "REDIS_URL": "store.redis_url",
    "SMARTSUMMARY_STORE": "store.backend",
    "STREAM_TIMEOUT_S": "summary.stream_timeout_s",
    "LOG_LEVEL": "log_level",
}

ENV_REF_PREFIX = "env:"


def resolve_env_refs(value: Any, environ: Mapping[str, str]) -> Any:
    """Replace 'env:VAR_NAME' strings with the variable's value (recursively)."""
    if isinstance(value, str) and value.startswith(ENV_REF_PREFIX):
        return environ.get(value[len(ENV_REF_PREFIX):], "")
    if isinstance(value, dict):
        return {k: resolve_env_refs(v, environ) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_env_refs(v, environ) for v in value]
    return value


def _set_path(target: Dict[str, Any], dotted: str, value: Any) -> None:
    parts = dotted.split(".")
    node = target
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value


class ConfigLoader:
    """Load and validate Smart Summary configuration.

    Sources, lowest to highest priority: built-in defaults, the YAML file
    (optional), environment variables.
    """

    def __init__(self, config_path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None):
        """
        Args:
            config_path: Path to YAML configuration file (missing file is allowed)
            environ: Environment mapping (defaults to os.environ)
        """
        self.config_path = Path(config_path) if config_path else None
        self.environ = environ if environ is not None else os.environ
        self.config: Optional[SmartSummaryConfig] = None

    def _read_yaml(self) -> Dict[str, Any]:
        if not self.config_path or not self.config_path.exists():
            return {}
        try:
            with open(self.config_path, "r") as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML syntax in {self.config_path}: {e}") from e
        if not isinstance(raw_config, dict):
            raise ValueError(f"Configuration root must be a mapping in {self.config_path}")
        return raw_config

    def load(self) -> SmartSummaryConfig:
        """Load and validate configuration."""
        raw_config = resolve_env_refs(self._read_yaml(), self.environ)

        for env_var, dotted in ENV_OVERRIDES.items():
            value = self.environ.get(env_var)
            if value:
                _set_path(raw_config, dotted, value)

        # Validate through Pydantic
        try:
            self.config = SmartSummaryConfig(**raw_config)
        except Exception as e:
            source = self.config_path or "environment"
            raise ValueError(f"Configuration validation failed in {source}: {e}") from e

        return self.config
