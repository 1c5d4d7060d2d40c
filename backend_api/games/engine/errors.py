from __future__ import annotations

from typing import Optional


# PUBLIC_INTERFACE
class GameError(Exception):
    """Base class for errors raised by the game engine.

    Attributes:
        message: human readable description, safe to show to the caller
        field: optional name of the offending input field
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


# PUBLIC_INTERFACE
class ValidationError(GameError):
    """Malformed or out-of-range input."""


# PUBLIC_INTERFACE
class NotFoundError(GameError):
    """Missing game, missing template, or a game of a different kind."""


# PUBLIC_INTERFACE
class AuthorizationError(GameError):
    """Caller lacks creator/admin rights for the requested view or mutation."""


# PUBLIC_INTERFACE
class ConflictError(GameError):
    """Another game already owns the requested name."""
