"""polyinfer: route a prompt to the first usable of several text-generation endpoints.

Quick start::

    from polyinfer import init_config, say

    init_config({"providers": [...]})
    result = await say("Hello world", intent="chat")
"""

from polyinfer.config import (
    CacheConfig,
    Config,
    KeyFallbackStrategy,
    ProviderConfig,
    load_config,
    load_config_file,
    validate_intent,
)
from polyinfer.context import (
    PolyinferContext,
    clear_cache,
    get_default_context,
    get_metrics,
    init_config,
    reset_default_context,
    reset_metrics,
    set_default_context,
)
from polyinfer.core.errors import (
    ConfigError,
    KeyExhaustedError,
    PolyinferError,
    ProviderAttemptError,
    ProviderError,
    TransportError,
)
from polyinfer.orchestrator import PLACEHOLDER_MESSAGES, Orchestrator, Result, say

__version__ = "0.3.0"

__all__ = [
    "say",
    "init_config",
    "get_metrics",
    "reset_metrics",
    "clear_cache",
    "validate_intent",
    "load_config",
    "load_config_file",
    "Orchestrator",
    "Result",
    "PLACEHOLDER_MESSAGES",
    "Config",
    "ProviderConfig",
    "CacheConfig",
    "KeyFallbackStrategy",
    "PolyinferContext",
    "get_default_context",
    "set_default_context",
    "reset_default_context",
    "PolyinferError",
    "ConfigError",
    "ProviderError",
    "TransportError",
    "ProviderAttemptError",
    "KeyExhaustedError",
]
