"""Game use cases: glue between the variant engine, the ORM and asset storage.

Each function takes already validated data, resolves the variant handler from
the game kind and persists the result. Engine errors propagate to the caller;
the API layer turns them into HTTP responses.
"""
from __future__ import annotations

import logging
import random
import uuid
from typing import Any, Dict, List, Optional, Sequence

from django.db import IntegrityError, transaction

from .assets import AssetBatch, remove_assets
from .engine import (
    ConflictError,
    NotFoundError,
    Requester,
    best_of,
    ensure_can_manage,
    ensure_can_play,
    ensure_kind,
    get_handler,
    rank,
)
from .engine.base import unique_paths
from .models import Game, GameScore, GameTemplate

logger = logging.getLogger(__name__)

NAME_TAKEN = "Game name already exists"


def _load_game(kind: str, game_id: Any) -> Game:
    game = Game.objects.select_related("template").filter(pk=game_id).first()
    return ensure_kind(game, kind)


def _check_name_available(name: Optional[str], exclude_id: Any = None) -> None:
    """Optimistic check; the unique index on Game.name has the final word."""
    if not name:
        return
    qs = Game.objects.filter(name=name)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    if qs.exists():
        raise ConflictError(NAME_TAKEN, field="name")


def _save(game: Game, **kwargs) -> None:
    try:
        with transaction.atomic():
            game.save(**kwargs)
    except IntegrityError as exc:
        raise ConflictError(NAME_TAKEN, field="name") from exc


def _remove_after_commit(paths: List[str]) -> None:
    if paths:
        transaction.on_commit(lambda: remove_assets(paths))


# PUBLIC_INTERFACE
def collect_game_assets(game: Game) -> List[str]:
    """Every asset path a game references: payload assets plus thumbnail, no duplicates."""
    handler = get_handler(game.kind)
    return unique_paths(handler.assets(game.payload or {}) + [game.thumbnail_image])


# PUBLIC_INTERFACE
def create_game(
    kind: str,
    data: Dict[str, Any],
    files: Sequence[Any],
    creator: Any,
    thumbnail: Any = None,
) -> Game:
    """Create a game of the given kind.

    Parameters:
        kind: template slug
        data: validated input; name, description and is_publish_immediately are
            game fields, everything else goes to the variant builder
        files: uploaded payload assets
        creator: owning user
        thumbnail: optional thumbnail upload

    Raises:
        NotFoundError: unknown kind or missing template row.
        ConflictError: name taken.
        ValidationError: rejected by the variant builder.
    """
    handler = get_handler(kind)
    template = GameTemplate.objects.filter(slug=kind).first()
    if template is None:
        raise NotFoundError("Game template not found")

    data = dict(data)
    name = data.pop("name")
    description = data.pop("description", "") or ""
    is_published = bool(data.pop("is_publish_immediately", False))
    _check_name_available(name)

    game_id = uuid.uuid4()
    with AssetBatch(kind, game_id) as batch:
        payload = handler.build(data, files, batch.store)
        thumbnail_path = batch.store(thumbnail) if thumbnail is not None else ""
        game = Game(
            id=game_id,
            template=template,
            creator=creator,
            name=name,
            description=description,
            thumbnail_image=thumbnail_path,
            is_published=is_published,
            payload=payload,
        )
        _save(game, force_insert=True)

    logger.info("Created %s game %s (%s) with %d asset(s)", kind, game.pk, name, len(batch.stored))
    return game


# PUBLIC_INTERFACE
def get_game_detail(kind: str, game_id: Any, requester: Requester) -> Game:
    """Full stored game for its creator or an admin."""
    game = _load_game(kind, game_id)
    ensure_can_manage(game, requester)
    return game


# PUBLIC_INTERFACE
def get_play_view(
    kind: str,
    game_id: Any,
    requester: Requester,
    is_public: bool,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """Play payload of a game.

    The public view requires a published game and never includes answers. The
    private view is for the creator or an admin and includes them.
    """
    game = _load_game(kind, game_id)
    ensure_can_play(game, requester, is_public)
    handler = get_handler(kind)
    view = handler.present(game.payload, rng=rng, include_answers=not is_public)
    return {
        "id": str(game.pk),
        "name": game.name,
        "description": game.description,
        "thumbnail_image": game.thumbnail_image,
        "is_published": game.is_published,
        **view,
    }


# PUBLIC_INTERFACE
def check_answers(kind: str, game_id: Any, data: Dict[str, Any]) -> Dict[str, Any]:
    """Grade submitted answers. Nothing is persisted."""
    game = _load_game(kind, game_id)
    result = get_handler(kind).score(game.payload, data)
    return {"game_id": str(game.pk), **result}


# PUBLIC_INTERFACE
def update_game(
    kind: str,
    game_id: Any,
    data: Dict[str, Any],
    files: Sequence[Any],
    requester: Requester,
    thumbnail: Any = None,
) -> Game:
    """Apply a partial update.

    Only fields present in data change. Assets dropped by the update, and the
    previous thumbnail when a new one is uploaded, are removed from storage
    once the transaction commits.
    """
    game = _load_game(kind, game_id)
    ensure_can_manage(game, requester)

    data = dict(data)
    name = data.pop("name", None)
    description = data.pop("description", None)
    is_publish = data.pop("is_publish", None)
    if name:
        _check_name_available(name, exclude_id=game.pk)

    handler = get_handler(kind)
    stale: List[str] = []
    with AssetBatch(kind, game.pk) as batch:
        payload, stale = handler.merge_update(game.payload, data, files, batch.store)
        if thumbnail is not None:
            stale = stale + [game.thumbnail_image]
            game.thumbnail_image = batch.store(thumbnail)
        if name:
            game.name = name
        if description is not None:
            game.description = description
        if is_publish is not None:
            game.is_published = bool(is_publish)
        game.payload = payload
        _save(game)

    stale = unique_paths(stale)
    _remove_after_commit(stale)
    logger.info("Updated %s game %s; %d stale asset(s) scheduled for removal", kind, game.pk, len(stale))
    return game


# PUBLIC_INTERFACE
def delete_game(kind: str, game_id: Any, requester: Requester) -> List[str]:
    """Delete a game and schedule removal of every asset it referenced.

    Returns:
        The removed asset paths.
    """
    game = _load_game(kind, game_id)
    ensure_can_manage(game, requester)
    paths = collect_game_assets(game)
    with transaction.atomic():
        game.delete()
        _remove_after_commit(paths)
    logger.info("Deleted %s game %s and %d asset(s)", kind, game_id, len(paths))
    return paths


# PUBLIC_INTERFACE
def record_score(data: Dict[str, Any], user: Any) -> GameScore:
    """Append one attempt for a published game."""
    game = Game.objects.filter(pk=data["game_id"], is_published=True).first()
    if game is None:
        raise NotFoundError("Game not found")
    attempt = GameScore.objects.create(
        user=user,
        game=game,
        score=data["score"],
        max_combo=data.get("max_combo") or 0,
        time_taken=data["time_taken"],
        matched_pairs=data["matched_pairs"],
        total_pairs=data["total_pairs"],
    )
    logger.info("Recorded score %d for user %s on game %s", attempt.score, user.pk, game.pk)
    return attempt


# PUBLIC_INTERFACE
def get_leaderboard(game_id: Any, page: int, per_page: int) -> Dict[str, Any]:
    """Ranked page of attempts for a game."""
    if not Game.objects.filter(pk=game_id).exists():
        raise NotFoundError("Game not found")
    attempts = GameScore.objects.filter(game_id=game_id).select_related("user")
    return rank(attempts, page=page, per_page=per_page)


# PUBLIC_INTERFACE
def get_best_score(game_id: Any, user: Any) -> Optional[GameScore]:
    """The user's personal best on a game, or None."""
    return best_of(GameScore.objects.filter(game_id=game_id), user.pk)
