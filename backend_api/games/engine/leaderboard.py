from __future__ import annotations

import math
from typing import Any, Dict, Iterable, Optional, Tuple

from .errors import ValidationError

# Score descending, then fastest, then earliest submission.
LEADERBOARD_ORDERING = ("-score", "time_taken", "created_at")


def _field(attempt: Any, name: str) -> Any:
    if isinstance(attempt, dict):
        return attempt[name]
    return getattr(attempt, name)


def sort_key(attempt: Any) -> Tuple[Any, Any, Any]:
    """Sort key matching LEADERBOARD_ORDERING for in-memory collections."""
    return (-_field(attempt, "score"), _field(attempt, "time_taken"), _field(attempt, "created_at"))


def _is_queryset(attempts: Any) -> bool:
    return hasattr(attempts, "order_by") and hasattr(attempts, "count")


# PUBLIC_INTERFACE
def page_meta(total: int, page: int, per_page: int) -> Dict[str, Any]:
    """Pagination metadata for an offset/limit page."""
    last_page = math.ceil(total / per_page)
    return {
        "total": total,
        "current_page": page,
        "per_page": per_page,
        "last_page": last_page,
        "prev": page - 1 if page > 1 else None,
        "next": page + 1 if page < last_page else None,
    }


# PUBLIC_INTERFACE
def rank(attempts: Iterable[Any], page: int = 1, per_page: int = 10) -> Dict[str, Any]:
    """Order attempts for one game and return the requested page.

    Parameters:
        attempts: a Django QuerySet (ordered in the database) or any iterable of
            objects/dicts exposing score, time_taken and created_at
        page: 1-based page number
        per_page: page size

    Returns:
        {"data": [attempt, ...], "meta": page_meta(...)}

    Raises:
        ValidationError: page or per_page below 1.
    """
    if page < 1:
        raise ValidationError("page must be at least 1", field="page")
    if per_page < 1:
        raise ValidationError("per_page must be at least 1", field="per_page")

    offset = per_page * (page - 1)
    if _is_queryset(attempts):
        ordered = attempts.order_by(*LEADERBOARD_ORDERING)
        total = ordered.count()
        data = list(ordered[offset:offset + per_page])
    else:
        ordered_list = sorted(attempts, key=sort_key)
        total = len(ordered_list)
        data = ordered_list[offset:offset + per_page]

    return {"data": data, "meta": page_meta(total, page, per_page)}


# PUBLIC_INTERFACE
def best_of(attempts: Iterable[Any], user_id: Any) -> Optional[Any]:
    """Return the user's best attempt under the leaderboard ordering, or None."""
    if _is_queryset(attempts):
        return attempts.filter(user_id=user_id).order_by(*LEADERBOARD_ORDERING).first()
    own = [a for a in attempts if _field(a, "user_id") == user_id]
    return min(own, key=sort_key) if own else None
