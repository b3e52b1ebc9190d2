"""
Configuration management and loading.

Handles optimizer settings from environment variables or a YAML file.
Configuration is validated once at startup and immutable afterwards.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from api_optimizer.core.cache import DEFAULT_TTL_SECONDS
from api_optimizer.storage.db import DEFAULT_DB_PATH

DEFAULT_UPSTREAM_TIMEOUT_SECONDS = 60.0

# Environment variable -> config field
ENV_KEYS = {
    "ENABLE_CACHE": "cache_enabled",
    "ENABLE_SMART_ROUTING": "smart_routing_enabled",
    "CACHE_TTL_SECONDS": "cache_ttl_seconds",
    "MAX_CACHE_ENTRIES": "max_cache_entries",
    "USAGE_DB_PATH": "db_path",
    "UPSTREAM_TIMEOUT_SECONDS": "upstream_timeout_seconds",
}


@dataclass(frozen=True)
class OptimizerConfig:
    """Complete optimizer configuration."""
    cache_enabled: bool = False
    smart_routing_enabled: bool = False
    cache_ttl_seconds: float = DEFAULT_TTL_SECONDS
    max_cache_entries: Optional[int] = None
    db_path: str = DEFAULT_DB_PATH
    upstream_timeout_seconds: float = DEFAULT_UPSTREAM_TIMEOUT_SECONDS

    def __post_init__(self):
        """Validate configuration values."""
        if not isinstance(self.cache_enabled, bool):
            raise ValueError("cache_enabled must be a boolean")
        if not isinstance(self.smart_routing_enabled, bool):
            raise ValueError("smart_routing_enabled must be a boolean")
        if self.cache_ttl_seconds <= 0:
            raise ValueError("cache_ttl_seconds must be > 0")
        if self.max_cache_entries is not None and self.max_cache_entries <= 0:
            raise ValueError("max_cache_entries must be > 0")
        if not self.db_path:
            raise ValueError("db_path cannot be empty")
        if self.upstream_timeout_seconds <= 0:
            raise ValueError("upstream_timeout_seconds must be > 0")


def load_config_from_env(environ: Optional[Mapping[str, str]] = None) -> OptimizerConfig:
    """Load configuration from environment variables.

    Unset variables fall back to defaults. Flags accept only "true" or
    "false" (case-insensitive).

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Validated OptimizerConfig

    Raises:
        ValueError: If a variable holds an invalid value
    """
    if environ is None:
        environ = os.environ

    values: Dict[str, Any] = {}
    for env_key, field_name in ENV_KEYS.items():
        raw = environ.get(env_key)
        if raw is None or raw.strip() == "":
            continue
        values[field_name] = _coerce(field_name, raw.strip(), env_key)

    return OptimizerConfig(**values)


def load_optimizer_config(path: str) -> OptimizerConfig:
    """Load and validate optimizer configuration from a YAML file.

    Strict validation ensures no silent misconfigurations.

    Example:
        cache:
          enabled: true
          ttl_seconds: 300
          max_entries: 10000
        routing:
          enabled: true
        upstream:
          timeout_seconds: 30
        analytics:
          db_path: usage.db

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated OptimizerConfig

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Optimizer config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'cache', 'routing', 'upstream', 'analytics'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    values: Dict[str, Any] = {}

    cache = _section(raw_config, 'cache', {'enabled', 'ttl_seconds', 'max_entries'})
    if 'enabled' in cache:
        values['cache_enabled'] = _require_bool(cache['enabled'], 'cache.enabled')
    if 'ttl_seconds' in cache:
        values['cache_ttl_seconds'] = _require_positive_number(cache['ttl_seconds'], 'cache.ttl_seconds')
    if 'max_entries' in cache:
        max_entries = cache['max_entries']
        if max_entries is not None:
            if isinstance(max_entries, bool) or not isinstance(max_entries, int) or max_entries <= 0:
                raise ValueError("'cache.max_entries' must be a positive integer")
        values['max_cache_entries'] = max_entries

    routing = _section(raw_config, 'routing', {'enabled'})
    if 'enabled' in routing:
        values['smart_routing_enabled'] = _require_bool(routing['enabled'], 'routing.enabled')

    upstream = _section(raw_config, 'upstream', {'timeout_seconds'})
    if 'timeout_seconds' in upstream:
        values['upstream_timeout_seconds'] = _require_positive_number(
            upstream['timeout_seconds'], 'upstream.timeout_seconds'
        )

    analytics = _section(raw_config, 'analytics', {'db_path'})
    if 'db_path' in analytics:
        db_path = analytics['db_path']
        if not isinstance(db_path, str) or not db_path.strip():
            raise ValueError("'analytics.db_path' must be a non-empty string")
        values['db_path'] = db_path

    return OptimizerConfig(**values)


def _section(raw_config: Dict, name: str, allowed_keys: set) -> Dict:
    """Return a validated config section (empty if absent)."""
    data = raw_config.get(name)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {name}: {unknown_keys}")
    return data


def _require_bool(value: Any, path: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"'{path}' must be true or false")
    return value


def _require_positive_number(value: Any, path: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValueError(f"'{path}' must be > 0")
    return float(value)


def _coerce(field_name: str, raw: str, env_key: str) -> Any:
    """Convert an environment string to the type of a config field."""
    if field_name in ('cache_enabled', 'smart_routing_enabled'):
        lowered = raw.lower()
        if lowered not in ('true', 'false'):
            raise ValueError(f"{env_key} must be 'true' or 'false', got {raw!r}")
        return lowered == 'true'
    if field_name == 'max_cache_entries':
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{env_key} must be an integer, got {raw!r}")
    if field_name in ('cache_ttl_seconds', 'upstream_timeout_seconds'):
        try:
            return float(raw)
        except ValueError:
            raise ValueError(f"{env_key} must be a number, got {raw!r}")
    return raw
