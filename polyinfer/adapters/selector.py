"""Intent-based provider selection."""
from typing import List, Sequence, Union

from polyinfer.config import ProviderConfig, normalize_intents

__all__ = ["select_providers"]


def select_providers(
    providers: Sequence[ProviderConfig],
    intent: Union[str, Sequence[str], None] = None,
) -> List[ProviderConfig]:
    """
    Order *providers* for an attempt.

    Without an intent the configured order is kept. With intents, providers
    are ranked by how many requested intents they declare (ties keep the
    configured order) and providers matching none are dropped. If nothing
    matches, the full list is returned in configured order.
    """
    requested = normalize_intents(intent if intent is None or isinstance(intent, str) else list(intent))
    if not requested:
        return list(providers)

    scored = []
    for index, provider in enumerate(providers):
        declared = set(provider.intents)
        match_count = sum(1 for i in requested if i in declared)
        if match_count > 0:
            scored.append((match_count, index, provider))

    if not scored:
        return list(providers)

    scored.sort(key=lambda item: (-item[0], item[1]))
    return [provider for _, _, provider in scored]
