"""
Configuration management and loading.

Handles the optional YAML settings file and its location.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

import yaml

from llm_pricing.core.errors import InvalidSortKeyError
from llm_pricing.core.pricing import DEFAULT_TTL_MINUTES, TTL_MULTIPLIERS
from llm_pricing.core.sorting import parse_sort
from llm_pricing.sdk.openrouter_client import DEFAULT_API_URL, DEFAULT_EXCLUDED_IDS, DEFAULT_TIMEOUT

CONFIG_ENV_VAR = "LLM_PRICING_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "llm-pricing" / "config.yaml"

ALLOWED_KEYS = {'api_url', 'timeout', 'exclude', 'sort', 'descending', 'ttl'}


@dataclass(frozen=True)
class Settings:
    """Defaults for catalog access and command options."""
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    exclude: FrozenSet[str] = field(default_factory=lambda: DEFAULT_EXCLUDED_IDS)
    sort: Optional[str] = None
    descending: bool = False
    ttl: int = DEFAULT_TTL_MINUTES

    def __post_init__(self):
        """Validate setting values."""
        if not self.api_url:
            raise ValueError("api_url cannot be empty")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.ttl not in TTL_MULTIPLIERS:
            raise ValueError(f"ttl must be one of: {sorted(TTL_MULTIPLIERS)}")


def resolve_config_path(path: Optional[str] = None) -> Optional[Path]:
    """Find the settings file to load, if any.

    An explicit path wins, then the LLM_PRICING_CONFIG environment variable,
    then the per-user default location when it exists.
    """
    if path:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    if DEFAULT_CONFIG_PATH.exists():
        return DEFAULT_CONFIG_PATH
    return None


def load_settings(path: Optional[str] = None) -> Settings:
    """Load and validate settings from a YAML file.

    Strict validation rejects unknown keys and wrong types so a typo never
    silently falls back to a default.

    Args:
        path: Explicit settings file path (optional)

    Returns:
        Validated Settings; built-in defaults when no file is found

    Raises:
        FileNotFoundError: If the resolved settings file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If settings are invalid
    """
    config_path = resolve_config_path(path)
    if config_path is None:
        return Settings()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {config_path}: {e}")

    if raw_config is None:
        return Settings()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration file must contain a mapping")

    return parse_settings(raw_config)


def parse_settings(data: Dict[str, Any]) -> Settings:
    """Validate a raw settings mapping.

    Raises:
        ValueError: If the mapping has unknown keys or invalid values
    """
    unknown_keys = set(data.keys()) - ALLOWED_KEYS
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {sorted(unknown_keys)}")

    values: Dict[str, Any] = {}

    if 'api_url' in data:
        if not isinstance(data['api_url'], str) or not data['api_url'].strip():
            raise ValueError("'api_url' must be a non-empty string")
        values['api_url'] = data['api_url']

    if 'timeout' in data:
        timeout = data['timeout']
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("'timeout' must be a number > 0")
        values['timeout'] = float(timeout)

    if 'exclude' in data:
        exclude = data['exclude']
        if not isinstance(exclude, list) or not all(isinstance(item, str) for item in exclude):
            raise ValueError("'exclude' must be a list of model ids")
        values['exclude'] = frozenset(exclude)

    if 'sort' in data:
        sort = data['sort']
        if not isinstance(sort, str):
            raise ValueError("'sort' must be a string")
        try:
            parse_sort(sort)
        except InvalidSortKeyError as e:
            raise ValueError(f"'sort': {e}")
        values['sort'] = sort

    if 'descending' in data:
        if not isinstance(data['descending'], bool):
            raise ValueError("'descending' must be true or false")
        values['descending'] = data['descending']

    if 'ttl' in data:
        ttl = data['ttl']
        if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl not in TTL_MULTIPLIERS:
            raise ValueError(f"'ttl' must be one of: {sorted(TTL_MULTIPLIERS)}")
        values['ttl'] = ttl

    return Settings(**values)
