from __future__ import annotations

from typing import Dict, List

from .anagram import AnagramHandler
from .base import VariantHandler
from .errors import NotFoundError
from .matching_pair import MatchingPairHandler


# PUBLIC_INTERFACE
class VariantRegistry:
    """Registry mapping game template kinds to variant handlers."""

    _registry: Dict[str, VariantHandler] = {
        "anagram": AnagramHandler(),
        "matching-pair": MatchingPairHandler(),
    }

    @classmethod
    def get(cls, kind: str) -> VariantHandler:
        """Return the handler for kind, or raise NotFoundError."""
        key = (kind or "").strip().lower()
        if key not in cls._registry:
            raise NotFoundError("Game template not found")
        return cls._registry[key]

    @classmethod
    def register(cls, kind: str, handler: VariantHandler) -> None:
        """Register or override the handler for a kind."""
        key = (kind or "").strip().lower()
        if not key:
            raise ValueError("kind must be a non-empty string")
        cls._registry[key] = handler

    @classmethod
    def kinds(cls) -> List[str]:
        return sorted(cls._registry)


# PUBLIC_INTERFACE
def get_handler(kind: str) -> VariantHandler:
    """Convenience lookup for the handler of a game kind.

    Example:
        handler = get_handler("anagram")
        result = handler.score(game.payload, {"answers": [...]})
    """
    return VariantRegistry.get(kind)
