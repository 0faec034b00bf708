"""Request templating and response text extraction.

``build_body`` and ``build_headers`` turn a provider's templates into the
outgoing request; ``extract_text`` pulls the generated text out of a
parsed response body.
"""
import json
import re
from typing import Any, Dict, List, Optional

from polyinfer.config import ProviderConfig

__all__ = [
    "API_KEY_PLACEHOLDER",
    "build_body",
    "build_headers",
    "escape_json",
    "extract_text",
]

API_KEY_PLACEHOLDER = "{api_key}"

_INDEX_RE = re.compile(r"\[(\d+)\]")

# Response shapes tried, in order, when a provider has no responsePath.
_FALLBACK_PATHS: List[str] = [
    "choices[0].message.content",
    "choices[0].text",
    "text",
    "output[0].content",
    "result.content",
    "content[0].text",
]


def escape_json(text: str) -> str:
    """Escape *text* for use inside a JSON string literal."""
    return json.dumps(text, ensure_ascii=False)[1:-1]


def build_body(provider: ProviderConfig, text: str) -> str:
    template = provider.request_structure
    return template.replace("{input}", escape_json(text)).replace("{model}", provider.model or "")


def build_headers(provider: ProviderConfig, api_key: Optional[str]) -> Dict[str, str]:
    """
    Headers for one attempt.

    Header values equal to ``{api_key}`` receive the active key (and are
    dropped when there is none). Without such a placeholder and without an
    explicit authorization header, a bearer header is added when a key is
    present.
    """
    headers: Dict[str, str] = {}
    has_placeholder = False
    for name, value in (provider.request_header or {}).items():
        if value == API_KEY_PLACEHOLDER:
            has_placeholder = True
            if api_key:
                headers[name] = api_key
            continue
        headers[name] = value

    # Header names are case-insensitive; a configured Content-Type wins.
    if not _has_header(headers, "content-type"):
        headers = {"content-type": "application/json", **headers}

    has_auth = _has_header(headers, "authorization")
    if api_key and not has_placeholder and not has_auth:
        headers["authorization"] = f"Bearer {api_key}"
    return headers


def _has_header(headers: Dict[str, str], name: str) -> bool:
    return any(key.lower() == name for key in headers)


def _lookup(response: Any, path: str) -> Any:
    normalized = _INDEX_RE.sub(r".\1", path)
    cur = response
    for part in (p for p in normalized.split(".") if p):
        if cur is None:
            return None
        if isinstance(cur, dict):
            cur = cur.get(part)
        elif isinstance(cur, list):
            if not part.isdigit() or int(part) >= len(cur):
                return None
            cur = cur[int(part)]
        else:
            return None
    return cur


def extract_text(response: Any, path: Optional[str] = None) -> Optional[str]:
    """
    Extract generated text from a parsed response body.

    Args:
        response: Parsed JSON body (or raw text).
        path: Dotted/bracket path such as ``choices[0].message.content``.

    Returns:
        The text, or None when nothing usable is found.
    """
    if not response:
        return None
    if not path:
        for candidate in _FALLBACK_PATHS:
            value = _lookup(response, candidate)
            if isinstance(value, str):
                return value
        if isinstance(response, str):
            return response
        return None

    value = _lookup(response, path)
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("content"), str):
        return value["content"]
    return None
