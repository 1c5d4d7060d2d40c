import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="GameTemplate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, help_text="Time when the record was created.")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Time when the record was last updated.")),
                (
                    "slug",
                    models.CharField(
                        choices=[("anagram", "Anagram"), ("matching-pair", "Matching Pair")],
                        max_length=32,
                        unique=True,
                    ),
                ),
                ("name", models.CharField(max_length=64)),
                ("description", models.CharField(blank=True, default="", max_length=256)),
            ],
            options={
                "verbose_name": "Game Template",
                "verbose_name_plural": "Game Templates",
                "ordering": ["slug"],
            },
        ),
        migrations.CreateModel(
            name="Game",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, help_text="Time when the record was created.")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Time when the record was last updated.")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=128, unique=True)),
                ("description", models.CharField(blank=True, default="", max_length=256)),
                (
                    "thumbnail_image",
                    models.CharField(blank=True, default="", help_text="Storage path of the thumbnail.", max_length=512),
                ),
                ("is_published", models.BooleanField(default=False)),
                ("payload", models.JSONField(default=dict, help_text="Variant-specific game data.")),
                (
                    "creator",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="games",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "template",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="games",
                        to="games.gametemplate",
                    ),
                ),
            ],
            options={
                "verbose_name": "Game",
                "verbose_name_plural": "Games",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="GameScore",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("score", models.PositiveIntegerField()),
                ("max_combo", models.PositiveIntegerField(default=0)),
                ("time_taken", models.PositiveIntegerField(help_text="Seconds spent on the attempt.")),
                ("matched_pairs", models.PositiveIntegerField(default=0)),
                ("total_pairs", models.PositiveIntegerField(default=1)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "game",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="scores",
                        to="games.game",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="game_scores",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Game Score",
                "verbose_name_plural": "Game Scores",
                "ordering": ["-score", "time_taken", "created_at"],
                "indexes": [
                    models.Index(
                        fields=["game", "-score", "time_taken", "created_at"],
                        name="games_score_rank_idx",
                    )
                ],
            },
        ),
    ]
