"""Request orchestration across configured providers.

The orchestrator answers a prompt with the first usable provider response.
A cache lookup comes first; on a miss, providers are ordered by intent and
tried either one after another (``synchronous``) or all at once
(``concurrent``, first success wins). Each provider tries its API keys
according to its fallback strategy, or makes a single key-less call when it
has no key available. When every path fails, a placeholder Result is
returned instead of raising.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from polyinfer.adapters.cache import fingerprint
from polyinfer.adapters.keys import KeyFallback, select_keys
from polyinfer.adapters.selector import select_providers
from polyinfer.adapters.template import build_body, build_headers, extract_text
from polyinfer.config import Config, ProviderConfig, load_config, validate_intent
from polyinfer.context import PolyinferContext, get_default_context
from polyinfer.core.env import resolve_credentials
from polyinfer.core.errors import (
    ConfigError,
    KeyExhaustedError,
    ProviderAttemptError,
    ProviderError,
    TransportError,
)
from polyinfer.core.logging import get_logger

logger = get_logger(__name__)

__all__ = ["PLACEHOLDER_MESSAGES", "Result", "Orchestrator", "say"]

PLACEHOLDER_MESSAGES = (
    "Music is too loud.. come again?",
    "Say again ... s l o w l y",
    "I'm sorry, I didn't catch that.",
    "Could you repeat that?",
    "Pardon me?",
)

IntentArg = Union[str, Sequence[str], None]
ConfigArg = Union[Config, Mapping[str, Any], None]


@dataclass
class Result:
    """Provider answer; ``raw_response`` is None when every provider failed."""
    raw_response: Any
    text: str


class Orchestrator:
    """
    Routes prompts for one configuration.

    Cache, metrics and still-running race attempts live in the (shared)
    context; consecutive-success counters belong to this instance.
    """

    def __init__(self, config: ConfigArg = None, *, context: Optional[PolyinferContext] = None):
        self.context = context or get_default_context()
        if config is None:
            config = self.context.config
            if config is None:
                raise ConfigError(
                    "No config provided and no default config initialized. "
                    "Call init_config() first or pass config to say()."
                )
        self.config: Config = load_config(config)
        self._consecutive: Dict[str, int] = {}

    # ------------------------------------------------------------------
    async def say(self, text: str, intent: IntentArg = None) -> Result:
        requested = validate_intent(self.config, intent)
        cache_cfg = self.config.cache
        key = fingerprint(text)

        if cache_cfg.enabled:
            cached = await self.context.cache.get(key)
            if cached is not None:
                self._log(f"Serving from cache: {text!r}")
                return cached

        providers = select_providers(self.config.providers, requested)
        if self.config.mode == "concurrent":
            return await self._run_concurrent(text, providers, key)
        return await self._run_sequential(text, providers, key)

    async def wait_pending(self) -> None:
        """Waits for attempts still running after a concurrent race was won."""
        await self.context.wait_pending()

    def consecutive_successes(self, provider_name: str) -> int:
        return self._consecutive.get(provider_name, 0)

    # Execution modes ----------------------------------------------------
    async def _run_sequential(self, text: str, providers: List[ProviderConfig], key: str) -> Result:
        for provider in providers:
            try:
                result = await self._try_provider(text, provider)
            except ProviderError as e:
                self._log(f"Provider {provider.name} failed: {e}", logging.WARNING)
                continue
            self._note_success(provider.name)
            await self._store(key, result)
            return result

        self._log("All providers failed", logging.WARNING)
        return self._placeholder()

    async def _run_concurrent(self, text: str, providers: List[ProviderConfig], key: str) -> Result:
        tasks = [asyncio.create_task(self._race_entry(text, p)) for p in providers]
        for task in tasks:
            self.context.track(task)

        pending = set(tasks)
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            # Selector order decides between attempts finishing together.
            for task in (t for t in tasks if t in done):
                result = task.result()
                if result is not None:
                    await self._store(key, result)
                    return result

        self._log("All providers failed", logging.WARNING)
        return self._placeholder()

    async def _race_entry(self, text: str, provider: ProviderConfig) -> Optional[Result]:
        try:
            return await self._try_provider(text, provider)
        except ProviderError as e:
            self._log(f"Provider {provider.name} failed: {e}", logging.WARNING)
            return None

    # Per-provider attempt -----------------------------------------------
    async def _try_provider(self, text: str, provider: ProviderConfig) -> Result:
        self._log(f"Trying provider: {provider.name}")
        keys = resolve_credentials(self.context.credentials, provider.api_key_from_env)

        if not keys:
            self._log(f"No API key available for {provider.name}, trying without one")
            return await self._attempt(text, provider, None)

        policy = KeyFallback.from_provider(provider)
        trial = select_keys(keys, policy, self.context.rng)
        for position, api_key in enumerate(trial, start=1):
            try:
                return await self._attempt(text, provider, api_key)
            except ProviderError as e:
                self._log(
                    f"Provider {provider.name} key {position}/{len(trial)} failed: {e}",
                    logging.WARNING,
                )
        raise KeyExhaustedError(provider.name, len(trial), len(keys), policy.strategy.value)

    async def _attempt(self, text: str, provider: ProviderConfig, api_key: Optional[str]) -> Result:
        body = build_body(provider, text)
        headers = build_headers(provider, api_key)

        start = time.perf_counter()
        try:
            res = await self.context.transport(provider.api_url, headers, body)
        except Exception as e:
            self._record(provider.name, start, success=False)
            raise TransportError(provider.name, f"request failed: {e}") from e

        if not res.ok:
            self._record(provider.name, start, success=False)
            raise ProviderAttemptError(provider.name, f"HTTP error {res.status}", status=res.status)

        extracted = extract_text(res.body, provider.response_path)
        if not extracted:
            self._record(provider.name, start, success=False)
            raise ProviderAttemptError(provider.name, "no text extracted", status=res.status)

        self._record(provider.name, start, success=True)
        self._log(f"Success from {provider.name}")
        return Result(raw_response=res.body, text=extracted)

    # Helpers --------------------------------------------------------------
    def _note_success(self, name: str) -> None:
        count = self._consecutive.get(name, 0) + 1
        if count >= self.config.consecutive_success:
            # Counter restarts; provider order is left as configured.
            self._log(f"Provider {name} reached consecutive success limit, switching")
            count = 0
        self._consecutive[name] = count

    async def _store(self, key: str, result: Result) -> None:
        cache_cfg = self.config.cache
        if cache_cfg.enabled:
            await self.context.cache.set(key, result, cache_cfg.ttl)

    def _record(self, name: str, start: float, success: bool) -> None:
        if not self.config.metrics:
            return
        latency_ms = (time.perf_counter() - start) * 1000.0
        if success:
            self.context.metrics.record_success(name, latency_ms)
        else:
            self.context.metrics.record_failure(name, latency_ms)

    def _placeholder(self) -> Result:
        return Result(raw_response=None, text=self.context.rng.choice(PLACEHOLDER_MESSAGES))

    def _log(self, message: str, level: int = logging.INFO) -> None:
        if self.config.logging:
            logger.log(level, message)


async def say(
    text: str,
    config: ConfigArg = None,
    intent: IntentArg = None,
    *,
    context: Optional[PolyinferContext] = None,
) -> Result:
    """
    Orchestrates a request to the configured providers.

    Concurrent attempts that lost the race are awaited before returning, so
    their outcomes are in the metrics once this coroutine completes.

    Args:
        text: The prompt sent to the providers.
        config: Optional configuration; the context's default config is used when omitted.
        intent: Optional intent (or list of intents) used to rank providers.
        context: Optional context; the process default context is used when omitted.

    Returns:
        The first successful Result, or a placeholder Result when every provider failed.

    Raises:
        ConfigError: If no configuration is available or it (or the intent) is invalid.
    """
    orchestrator = Orchestrator(config, context=context)
    result = await orchestrator.say(text, intent=intent)
    await orchestrator.wait_pending()
    return result
