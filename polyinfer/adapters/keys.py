"""API key fallback policy.

Given the credentials a provider actually has available and its fallback
descriptor, decide which keys to try and in which order. The result always
keeps the relative order of the available list.
"""
import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from polyinfer.config import KeyFallbackStrategy, ProviderConfig

__all__ = ["KeyFallback", "select_keys"]


@dataclass(frozen=True)
class KeyFallback:
    """Strategy name plus the parameters each strategy reads."""
    strategy: KeyFallbackStrategy = KeyFallbackStrategy.FIRST
    count: int = 2
    indices: Optional[Sequence[int]] = None
    range_start: Optional[int] = None
    range_end: Optional[int] = None
    subset_count: Optional[int] = None
    subset_from: Optional[int] = None

    @classmethod
    def from_provider(cls, provider: ProviderConfig) -> "KeyFallback":
        return cls(
            strategy=provider.api_key_fallback_strategy,
            count=provider.api_key_fallback_count,
            indices=provider.api_key_fallback_indices,
            range_start=provider.api_key_fallback_range_start,
            range_end=provider.api_key_fallback_range_end,
            subset_count=provider.api_key_fallback_subset_count,
            subset_from=provider.api_key_fallback_subset_from,
        )


def _first(keys: List[str], policy: KeyFallback, rng: random.Random) -> List[str]:
    return keys[:1]


def _all(keys: List[str], policy: KeyFallback, rng: random.Random) -> List[str]:
    return list(keys)


def _count(keys: List[str], policy: KeyFallback, rng: random.Random) -> List[str]:
    return keys[:max(policy.count, 1)]


def _indices(keys: List[str], policy: KeyFallback, rng: random.Random) -> List[str]:
    valid = sorted({i for i in (policy.indices or []) if 0 <= i < len(keys)})
    if not valid:
        return _first(keys, policy, rng)
    return [keys[i] for i in valid]


def _range(keys: List[str], policy: KeyFallback, rng: random.Random) -> List[str]:
    if policy.range_start is None or policy.range_end is None:
        return _first(keys, policy, rng)
    start = max(policy.range_start, 0)
    end = min(policy.range_end, len(keys) - 1)
    if start > end:
        return _first(keys, policy, rng)
    return keys[start:end + 1]


def _subset(keys: List[str], policy: KeyFallback, rng: random.Random) -> List[str]:
    if policy.subset_count is None or policy.subset_from is None:
        return _first(keys, policy, rng)
    pool = min(max(policy.subset_from, 0), len(keys))
    size = min(max(policy.subset_count, 0), pool)
    if size == 0:
        return _first(keys, policy, rng)
    picked = sorted(rng.sample(range(pool), size))
    return [keys[i] for i in picked]


_STRATEGIES: Dict[KeyFallbackStrategy, Callable[[List[str], KeyFallback, random.Random], List[str]]] = {
    KeyFallbackStrategy.FIRST: _first,
    KeyFallbackStrategy.ALL: _all,
    KeyFallbackStrategy.COUNT: _count,
    KeyFallbackStrategy.INDICES: _indices,
    KeyFallbackStrategy.RANGE: _range,
    KeyFallbackStrategy.SUBSET: _subset,
}


def select_keys(
    keys: Sequence[str],
    policy: KeyFallback,
    rng: Optional[random.Random] = None,
) -> List[str]:
    """
    Return the ordered subset of *keys* to attempt under *policy*.

    Args:
        keys: Available (non-empty) credentials in configured source order.
        policy: Fallback descriptor of the provider.
        rng: Random source used by the ``subset`` strategy.

    Raises:
        ValueError: If *keys* is empty; the caller takes the no-key path instead.
    """
    if not keys:
        raise ValueError("select_keys needs at least one available key")
    strategy = _STRATEGIES.get(KeyFallbackStrategy(policy.strategy))
    if strategy is None:
        raise ValueError(f"Unknown key fallback strategy: {policy.strategy}")
    return strategy(list(keys), policy, rng or random.Random())
