from __future__ import annotations

import math
import random
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

# Persists one uploaded file and returns its stored path.
AssetStore = Callable[[Any], str]


class VariantHandler(Protocol):
    """Protocol implemented by every game variant.

    Payloads are plain JSON-compatible dicts so they can be stored as-is in a
    JSON column. Handlers never touch the record store; the caller loads the
    payload, passes it in and persists whatever comes back.
    """

    kind: str

    # PUBLIC_INTERFACE
    def build(self, data: Dict[str, Any], files: Sequence[Any], store: AssetStore) -> Dict[str, Any]:
        """Validate authored input and return the canonical payload."""

    # PUBLIC_INTERFACE
    def present(
        self,
        payload: Dict[str, Any],
        rng: Optional[random.Random] = None,
        include_answers: bool = True,
    ) -> Dict[str, Any]:
        """Return the play view of a payload (shuffled, scrambled)."""

    # PUBLIC_INTERFACE
    def score(self, payload: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
        """Grade submitted answers. Must be pure and idempotent."""

    # PUBLIC_INTERFACE
    def merge_update(
        self,
        payload: Dict[str, Any],
        data: Dict[str, Any],
        files: Sequence[Any],
        store: AssetStore,
    ) -> Tuple[Dict[str, Any], List[str]]:
        """Apply a partial update; return (new_payload, asset paths to delete)."""

    # PUBLIC_INTERFACE
    def assets(self, payload: Dict[str, Any]) -> List[str]:
        """Every asset path referenced by the payload."""


def percentage(score: int, max_score: int) -> float:
    """Score as a percentage of max_score, rounded half-up to 2 decimals."""
    if max_score <= 0:
        return 0.0
    return math.floor((score / max_score) * 10000 + 0.5) / 100


def unique_paths(paths: Iterable[Optional[str]]) -> List[str]:
    """Drop empty entries and duplicates, keeping first-seen order."""
    seen = set()
    result: List[str] = []
    for path in paths:
        if path and path not in seen:
            seen.add(path)
            result.append(path)
    return result


def removed_paths(old: Iterable[str], new: Iterable[str]) -> List[str]:
    """Paths present in old but absent from new."""
    keep = set(new)
    return [p for p in unique_paths(old) if p not in keep]
