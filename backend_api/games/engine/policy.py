"""Access rules shared by every variant operation.

Games are duck-typed: anything exposing kind, creator_id and is_published works,
so the rules can be exercised without a database.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol

from .errors import AuthorizationError, NotFoundError


class _GameLike(Protocol):
    kind: str
    creator_id: Any
    is_published: bool


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Requester:
    """Identity of the caller: user id (None when anonymous) and admin flag."""

    user_id: Any = None
    is_admin: bool = False

    @classmethod
    def from_user(cls, user: Any) -> "Requester":
        """Build a Requester from a Django user (anonymous users have no id)."""
        if user is None or not getattr(user, "is_authenticated", False):
            return cls()
        return cls(user_id=user.pk, is_admin=bool(getattr(user, "is_superuser", False)))


# PUBLIC_INTERFACE
def can_view_private(game: _GameLike, requester: Requester) -> bool:
    """Admins and the game's creator may see private data."""
    if requester.is_admin:
        return True
    return requester.user_id is not None and requester.user_id == game.creator_id


# PUBLIC_INTERFACE
def can_view_public(game: _GameLike) -> bool:
    return bool(game.is_published)


# PUBLIC_INTERFACE
def ensure_kind(game: Optional[_GameLike], kind: str) -> _GameLike:
    """Treat a missing game and a game of another kind the same way."""
    if game is None or game.kind != kind:
        raise NotFoundError("Game not found")
    return game


# PUBLIC_INTERFACE
def ensure_can_manage(game: _GameLike, requester: Requester) -> None:
    if not can_view_private(game, requester):
        raise AuthorizationError("You do not have access to this game")


# PUBLIC_INTERFACE
def ensure_can_play(game: _GameLike, requester: Requester, is_public: bool) -> None:
    """Public play needs a published game; private play needs manage rights."""
    if is_public:
        if not can_view_public(game):
            raise AuthorizationError("This game is not published")
    else:
        ensure_can_manage(game, requester)
