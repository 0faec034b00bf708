"""Shared runtime state for orchestrators.

A PolyinferContext bundles the state every orchestrator built on it
shares: the response cache, the metrics recorder, the default
configuration slot and the injected capabilities (transport, credential
resolver, random source). The module keeps one lazily-built default
context for the top-level convenience API.
"""
import asyncio
import random
from typing import Any, Dict, Mapping, Optional, Set, Union

from polyinfer.adapters.cache import PromptCache
from polyinfer.adapters.http import HttpxTransport, Transport
from polyinfer.adapters.metrics import MetricsRecorder, ProviderStats
from polyinfer.config import Config, load_config, load_config_file
from polyinfer.core.env import CredentialResolver, EnvCredentialResolver
from polyinfer.core.logging import get_logger
from polyinfer.core.settings import get_settings

logger = get_logger(__name__)

__all__ = [
    "PolyinferContext",
    "get_default_context",
    "set_default_context",
    "reset_default_context",
    "init_config",
    "get_metrics",
    "reset_metrics",
    "clear_cache",
]


class PolyinferContext:
    def __init__(
        self,
        *,
        cache: Optional[PromptCache] = None,
        metrics: Optional[MetricsRecorder] = None,
        transport: Optional[Transport] = None,
        credentials: Optional[CredentialResolver] = None,
        rng: Optional[random.Random] = None,
        config: Union[Config, Mapping[str, Any], None] = None,
    ):
        self.cache = cache if cache is not None else PromptCache()
        self.metrics = metrics if metrics is not None else MetricsRecorder()
        if transport is None:
            transport = HttpxTransport(timeout=get_settings().HTTP_TIMEOUT)
        self.transport = transport
        self.credentials = credentials if credentials is not None else EnvCredentialResolver()
        self.rng = rng if rng is not None else random.Random()
        # Attempts still running after a concurrent race was decided.
        self.pending: Set[asyncio.Task] = set()
        self._config: Optional[Config] = None
        if config is not None:
            self.install_config(config)

    @property
    def config(self) -> Optional[Config]:
        return self._config

    def install_config(self, config: Union[Config, Mapping[str, Any]]) -> Config:
        """Validates *config* and installs it as this context's default, replacing any previous one."""
        self._config = load_config(config)
        return self._config

    def track(self, task: asyncio.Task) -> None:
        self.pending.add(task)
        task.add_done_callback(self.pending.discard)

    async def wait_pending(self) -> None:
        """Waits until every background attempt has finished and posted its metrics."""
        while True:
            running = [t for t in self.pending if not t.done()]
            if not running:
                return
            await asyncio.gather(*running, return_exceptions=True)

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_metrics(self) -> Dict[str, ProviderStats]:
        return self.metrics.get_metrics()

    def reset_metrics(self) -> None:
        self.metrics.reset_metrics()

    def close(self) -> None:
        """Teardown: drops cached results, recorded stats and the installed configuration."""
        self.cache.clear()
        self.metrics.reset_metrics()
        self._config = None

    def __enter__(self) -> "PolyinferContext":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


# --- Process Default Context ---
_default_context: Optional[PolyinferContext] = None


def get_default_context() -> PolyinferContext:
    """
    Returns the process-wide default context, building it on first use.
    When POLYINFER_CONFIG_PATH is set, that file becomes the default config.
    """
    global _default_context
    if _default_context is None:
        context = PolyinferContext()
        config_path = get_settings().CONFIG_PATH
        if config_path:
            context.install_config(load_config_file(config_path))
            logger.info(f"Installed default configuration from {config_path}")
        _default_context = context
    return _default_context


def set_default_context(context: PolyinferContext) -> None:
    global _default_context
    _default_context = context


def reset_default_context() -> None:
    """Tears down the default context; the next call builds a fresh one."""
    global _default_context
    if _default_context is not None:
        _default_context.close()
    _default_context = None


# --- Convenience API on the default context ---

def init_config(config: Union[Config, Mapping[str, Any]]) -> Config:
    """
    Validates and installs the process-wide default configuration.
    This should be called once at application startup.
    """
    return get_default_context().install_config(config)


def get_metrics() -> Dict[str, ProviderStats]:
    return get_default_context().get_metrics()


def reset_metrics() -> None:
    get_default_context().reset_metrics()


def clear_cache() -> None:
    get_default_context().clear_cache()
