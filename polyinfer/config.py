"""Configuration models and loaders.

A configuration is validated and defaulted once, at load time, and is
read-only afterwards. Every validation failure surfaces as ``ConfigError``.
"""
from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from polyinfer.core.errors import ConfigError
from polyinfer.core.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "KeyFallbackStrategy",
    "ProviderConfig",
    "CacheConfig",
    "Config",
    "load_config",
    "load_config_file",
    "normalize_intents",
    "validate_intent",
]

IntentValue = Union[str, List[str], None]


class KeyFallbackStrategy(str, Enum):
    """Which of a provider's available API keys are attempted."""
    FIRST = "first"
    ALL = "all"
    COUNT = "count"
    INDICES = "indices"
    RANGE = "range"
    SUBSET = "subset"


def normalize_intents(intent: IntentValue) -> List[str]:
    """Turn an absent, single or list intent value into a de-duplicated list."""
    if intent is None:
        return []
    if isinstance(intent, str):
        return [intent]
    seen: List[str] = []
    for item in intent:
        if item not in seen:
            seen.append(item)
    return seen


class ProviderConfig(BaseModel):
    """A configured remote text-generation endpoint."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = Field(..., min_length=1)
    api_url: str = Field(..., min_length=1)
    model: Optional[str] = None
    request_structure: str
    request_header: Optional[Dict[str, str]] = None
    api_key_from_env: List[str] = Field(default_factory=list)
    response_path: Optional[str] = Field(None, alias="responsePath")
    intent: IntentValue = None

    api_key_fallback_strategy: KeyFallbackStrategy = KeyFallbackStrategy.FIRST
    api_key_fallback_count: int = Field(2, ge=1)
    api_key_fallback_indices: Optional[List[int]] = None
    api_key_fallback_range_start: Optional[int] = None
    api_key_fallback_range_end: Optional[int] = None
    api_key_fallback_subset_count: Optional[int] = None
    api_key_fallback_subset_from: Optional[int] = None

    @property
    def intents(self) -> List[str]:
        return normalize_intents(self.intent)


class CacheConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    ttl: int = Field(600_000, ge=0, description="Entry lifetime in milliseconds.")


class Config(BaseModel):
    """Validated, defaulted configuration owned by an orchestrator."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    providers: List[ProviderConfig] = Field(..., min_length=1)
    all_intents: Optional[List[str]] = None
    mode: Literal["synchronous", "concurrent"] = "synchronous"
    consecutive_success: int = Field(5, ge=1)
    logging: bool = True
    metrics: bool = True
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator("mode", mode="before")
    @classmethod
    def _accept_sequential(cls, value: Any) -> Any:
        if value == "sequential":
            return "synchronous"
        return value

    @model_validator(mode="after")
    def _check_providers(self) -> "Config":
        names = [p.name for p in self.providers]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"provider names must be unique, duplicated: {', '.join(duplicates)}")
        if self.all_intents is not None:
            allowed = set(self.all_intents)
            for provider in self.providers:
                unknown = [i for i in provider.intents if i not in allowed]
                if unknown:
                    raise ValueError(
                        f"provider '{provider.name}' declares intents outside all_intents: {', '.join(unknown)}"
                    )
        return self


def load_config(data: Union[Config, Mapping[str, Any]]) -> Config:
    """
    Validate *data* and fill in defaults.

    Args:
        data: A partial configuration mapping, or an already-built Config.

    Returns:
        The validated Config.

    Raises:
        ConfigError: On any schema violation.
    """
    if isinstance(data, Config):
        return data
    if not isinstance(data, Mapping):
        raise ConfigError(f"configuration must be a mapping, got {type(data).__name__}")
    try:
        return Config.model_validate(dict(data))
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config_file(path: Union[str, Path]) -> Config:
    """Loads a YAML or JSON file and validates it with load_config."""
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            if config_path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigError(f"Could not parse configuration file {config_path}: {e}") from e
    logger.debug(f"Loaded configuration from {config_path}")
    return load_config(data or {})


def validate_intent(config: Config, intent: Union[str, Sequence[str], None]) -> List[str]:
    """
    Check caller-supplied intents against the configured whitelist.

    Returns the normalized intent list; raises ConfigError for any intent
    outside ``all_intents`` when that whitelist is configured.
    """
    requested = normalize_intents(intent if intent is None or isinstance(intent, str) else list(intent))
    if config.all_intents is None:
        return requested
    unknown = [i for i in requested if i not in config.all_intents]
    if unknown:
        raise ConfigError(
            f"Unknown intent(s): {', '.join(unknown)}. Allowed: {', '.join(config.all_intents)}"
        )
    return requested
