"""Adapters layer providing caching, metrics, key selection, provider selection and transport.

The orchestrator composes these; each sub-module is usable on its own.
"""

from __future__ import annotations

from .cache import PromptCache, fingerprint
from .http import HttpResponse, HttpxTransport
from .keys import KeyFallback, select_keys
from .metrics import MetricsRecorder, ProviderStats
from .selector import select_providers
from .template import build_body, build_headers, extract_text

__all__ = [
    "PromptCache",
    "fingerprint",
    "HttpResponse",
    "HttpxTransport",
    "KeyFallback",
    "select_keys",
    "MetricsRecorder",
    "ProviderStats",
    "select_providers",
    "build_body",
    "build_headers",
    "extract_text",
]
