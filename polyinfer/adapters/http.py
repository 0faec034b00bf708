"""HTTP transport used by the orchestrator.

The orchestrator depends only on the ``Transport`` call signature: an async
callable taking ``(url, headers, body)`` and returning an ``HttpResponse``.
``HttpxTransport`` is the default implementation.
"""
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from polyinfer.core.errors import TransportError
from polyinfer.core.logging import get_logger

logger = get_logger(__name__)

__all__ = ["HttpResponse", "HttpxTransport", "Transport"]


@dataclass
class HttpResponse:
    """Normalized response: parsed JSON body, or the raw text when it is not JSON."""
    ok: bool
    status: int
    body: Any
    raw_text: str = ""


Transport = Callable[[str, Dict[str, str], str], Awaitable[HttpResponse]]


def _parse_body(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return text


class HttpxTransport:
    """POSTs the request body verbatim with httpx."""

    def __init__(
        self,
        timeout: Optional[float] = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        # Optional low-level transport, e.g. httpx.MockTransport in tests.
        self._transport = transport

    async def __call__(self, url: str, headers: Dict[str, str], body: str) -> HttpResponse:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, headers=headers, content=body.encode("utf-8"))
            except httpx.HTTPError as e:
                logger.debug(f"HTTP error calling {url}: {e}")
                raise TransportError(url, str(e) or type(e).__name__) from e

            text = response.text
            return HttpResponse(
                ok=response.is_success,
                status=response.status_code,
                body=_parse_body(text),
                raw_text=text,
            )
