"""
Game variant engine.

Exports:
- VariantRegistry and get_handler for resolving variant handlers by kind
- AnagramHandler and MatchingPairHandler variant classes
- shuffle_sequence and scramble_word shuffle primitives
- rank and best_of leaderboard helpers
- access policy predicates and the engine error types

Nothing here imports Django; callers pass payloads and identities in and
persist whatever comes back.
"""

from .anagram import AnagramHandler
from .errors import AuthorizationError, ConflictError, GameError, NotFoundError, ValidationError
from .leaderboard import LEADERBOARD_ORDERING, best_of, page_meta, rank
from .matching_pair import KEEP_ALL_IMAGES, MatchingPairHandler
from .policy import (
    Requester,
    can_view_private,
    can_view_public,
    ensure_can_manage,
    ensure_can_play,
    ensure_kind,
)
from .registry import VariantRegistry, get_handler
from .shuffle import count_letters, scramble_word, shuffle_sequence

__all__ = [
    "AnagramHandler",
    "MatchingPairHandler",
    "KEEP_ALL_IMAGES",
    "VariantRegistry",
    "get_handler",
    "shuffle_sequence",
    "scramble_word",
    "count_letters",
    "rank",
    "best_of",
    "page_meta",
    "LEADERBOARD_ORDERING",
    "Requester",
    "can_view_private",
    "can_view_public",
    "ensure_kind",
    "ensure_can_manage",
    "ensure_can_play",
    "GameError",
    "ValidationError",
    "NotFoundError",
    "AuthorizationError",
    "ConflictError",
]
