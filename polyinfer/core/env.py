# -*- coding: utf-8 -*-
"""
Credential resolvers.

A provider names its credentials by *source identifier* (for the default
resolver, an environment variable name). Resolution happens on every call
so that keys rotated outside the process take effect without reloading the
configuration.

Example:
    resolver = EnvCredentialResolver()
    keys = resolve_credentials(resolver, ["OPENAI_API_KEY", "OPENAI_API_KEY_2"])
"""
import os
from typing import Iterable, List, Mapping, Optional, Protocol

from dotenv import load_dotenv


class CredentialResolver(Protocol):
    def resolve(self, source_id: str) -> Optional[str]:
        """Return the credential stored under *source_id*, or None."""
        ...


class EnvCredentialResolver:
    """Reads credentials from the process environment at call time."""

    def __init__(self, dotenv: bool = True) -> None:
        if dotenv:
            # Variables already present in the environment are never overridden.
            load_dotenv()

    def resolve(self, source_id: str) -> Optional[str]:
        return os.getenv(source_id)


class MappingCredentialResolver:
    """Resolves credentials from a fixed mapping; handy for tests and embedding."""

    def __init__(self, values: Mapping[str, str]) -> None:
        self._values = dict(values)

    def resolve(self, source_id: str) -> Optional[str]:
        return self._values.get(source_id)


def resolve_credentials(resolver: CredentialResolver, sources: Iterable[str]) -> List[str]:
    """
    Return the non-empty credentials for *sources*, in configured order.

    Args:
        resolver: Capability used to look up each source identifier.
        sources: Ordered credential source identifiers.

    Returns:
        The credentials whose source yielded a non-empty value.
    """
    keys = []
    for source_id in sources:
        val = resolver.resolve(source_id)
        if val:
            keys.append(val)
    return keys
