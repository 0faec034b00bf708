"""Shared fixtures: a scripted transport, a controllable clock and an isolated context."""
import asyncio
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import pytest

from polyinfer.adapters.cache import PromptCache
from polyinfer.adapters.http import HttpResponse
from polyinfer.context import PolyinferContext, reset_default_context
from polyinfer.core.env import MappingCredentialResolver
from polyinfer.core.settings import get_settings


def ok(body: Any) -> HttpResponse:
    return HttpResponse(ok=True, status=200, body=body, raw_text=str(body))


def fail(status: int = 500, body: Any = None) -> HttpResponse:
    body = body if body is not None else {"error": "down"}
    return HttpResponse(ok=False, status=status, body=body, raw_text=str(body))


@dataclass
class Delayed:
    """Scripted reply delivered after *seconds*."""
    seconds: float
    reply: Union[HttpResponse, Exception]


@dataclass
class Call:
    url: str
    headers: Dict[str, str]
    body: str


class FakeTransport:
    """
    Scripted transport. Replies are queued per URL; the last reply of a
    queue is repeated once the others are used up.
    """

    def __init__(self) -> None:
        self.calls: List[Call] = []
        self._replies: Dict[str, List[Any]] = {}

    def script(self, url: str, *replies: Any) -> "FakeTransport":
        self._replies[url] = list(replies)
        return self

    def calls_to(self, url: str) -> List[Call]:
        return [c for c in self.calls if c.url == url]

    async def __call__(self, url: str, headers: Dict[str, str], body: str) -> HttpResponse:
        self.calls.append(Call(url, dict(headers), body))
        queue = self._replies.get(url)
        if not queue:
            raise ConnectionError(f"no route to {url}")
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(reply, Delayed):
            await asyncio.sleep(reply.seconds)
            reply = reply.reply
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeClock:
    """Stands in for time.time; advanced explicitly by tests."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


def make_provider(name: str, **overrides: Any) -> Dict[str, Any]:
    provider = {
        "name": name,
        "api_url": f"https://{name}.example.com/v1/generate",
        "request_structure": '{"prompt": "{input}"}',
        "api_key_from_env": [],
        "responsePath": "text",
    }
    provider.update(overrides)
    return provider


def make_config(*providers: Dict[str, Any], **overrides: Any) -> Dict[str, Any]:
    config = {
        "providers": list(providers),
        "mode": "synchronous",
        "consecutive_success": 5,
        "logging": False,
        "metrics": True,
        "cache": {"enabled": False, "ttl": 60000},
    }
    config.update(overrides)
    return config


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(now=1_000.0)


@pytest.fixture
def credentials() -> MappingCredentialResolver:
    return MappingCredentialResolver({})


@pytest.fixture
def context(transport, clock, credentials) -> PolyinferContext:
    ctx = PolyinferContext(
        cache=PromptCache(clock=clock),
        transport=transport,
        credentials=credentials,
        rng=random.Random(7),
    )
    yield ctx
    ctx.close()


@pytest.fixture(autouse=True)
def isolated_default_context(monkeypatch):
    """Every test starts without a process default context or config file."""
    monkeypatch.delenv("POLYINFER_CONFIG_PATH", raising=False)
    get_settings.cache_clear()
    reset_default_context()
    yield
    reset_default_context()
    get_settings.cache_clear()
