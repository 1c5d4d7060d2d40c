"""
Mini games app: anagram and matching-pair games with scoring and leaderboards.

The framework-agnostic rules live in games.engine; import them from there,
e.g.:

    from games.engine import get_handler, rank
"""
