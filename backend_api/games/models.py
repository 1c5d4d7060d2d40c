from __future__ import annotations

import uuid

from django.conf import settings
from django.db import models


# PUBLIC_INTERFACE
class TimeStampedModel(models.Model):
    """Abstract base model providing created/updated timestamps.

    Notes:
        Keep this abstract model free of any logic that would access the Django
        app registry or execute queries at module import time.
    """
    created_at = models.DateTimeField(auto_now_add=True, help_text="Time when the record was created.")
    updated_at = models.DateTimeField(auto_now=True, help_text="Time when the record was last updated.")

    class Meta:
        abstract = True


# PUBLIC_INTERFACE
class GameTemplateKind(models.TextChoices):
    """Variant tag of a game. Values double as variant registry keys."""

    ANAGRAM = "anagram", "Anagram"
    MATCHING_PAIR = "matching-pair", "Matching Pair"


# PUBLIC_INTERFACE
class GameTemplate(TimeStampedModel):
    """A game type authors can create games from.

    Fields:
    - slug: variant kind, one of GameTemplateKind
    - name: display name
    - description: short explanation shown when picking a template
    """
    slug = models.CharField(max_length=32, unique=True, choices=GameTemplateKind.choices)
    name = models.CharField(max_length=64)
    description = models.CharField(max_length=256, blank=True, default="")

    class Meta:
        ordering = ["slug"]
        verbose_name = "Game Template"
        verbose_name_plural = "Game Templates"

    def __str__(self) -> str:  # pragma: no cover
        return self.name


# PUBLIC_INTERFACE
class Game(TimeStampedModel):
    """An authored puzzle instance.

    Fields:
    - id: UUID assigned at creation
    - template: the game type; fixes the payload schema, never changes
    - creator: owning account
    - name: unique across all games
    - description, thumbnail_image: presentation metadata (thumbnail is a storage path)
    - is_published: gates public play and score submission
    - payload: variant-specific JSON document, only touched by the matching handler
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    template = models.ForeignKey(GameTemplate, on_delete=models.PROTECT, related_name="games")
    creator = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="games")
    name = models.CharField(max_length=128, unique=True)
    description = models.CharField(max_length=256, blank=True, default="")
    thumbnail_image = models.CharField(max_length=512, blank=True, default="", help_text="Storage path of the thumbnail.")
    is_published = models.BooleanField(default=False)
    payload = models.JSONField(default=dict, help_text="Variant-specific game data.")

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Game"
        verbose_name_plural = "Games"

    @property
    def kind(self) -> str:
        return self.template.slug

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.name} ({self.template.slug})"


# PUBLIC_INTERFACE
class GameScore(models.Model):
    """One completed play of a game. Rows are append-only.

    Fields:
    - user, game: who played what
    - score, max_combo, time_taken (seconds), matched_pairs, total_pairs
    - created_at: submission time, last leaderboard tie-breaker
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="game_scores")
    game = models.ForeignKey(Game, on_delete=models.CASCADE, related_name="scores")
    score = models.PositiveIntegerField()
    max_combo = models.PositiveIntegerField(default=0)
    time_taken = models.PositiveIntegerField(help_text="Seconds spent on the attempt.")
    matched_pairs = models.PositiveIntegerField(default=0)
    total_pairs = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-score", "time_taken", "created_at"]
        indexes = [models.Index(fields=["game", "-score", "time_taken", "created_at"], name="games_score_rank_idx")]
        verbose_name = "Game Score"
        verbose_name_plural = "Game Scores"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Game scores are immutable once recorded.")
        super().save(*args, **kwargs)

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.user_id} scored {self.score} on {self.game_id}"
