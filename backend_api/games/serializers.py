from __future__ import annotations

import json
from typing import Any, Dict

from django.conf import settings
from rest_framework import serializers
from rest_framework.utils import html

from .models import Game, GameScore


def _validate_upload_size(upload: Any) -> None:
    """Reject uploads above ASSET_MAX_UPLOAD_BYTES."""
    limit = getattr(settings, "ASSET_MAX_UPLOAD_BYTES", 2 * 1024 * 1024)
    if upload.size > limit:
        raise serializers.ValidationError(f"File {upload.name} exceeds {limit} bytes.")


def _file_list(**kwargs) -> serializers.ListField:
    return serializers.ListField(
        child=serializers.FileField(validators=[_validate_upload_size]),
        **kwargs,
    )


class JSONListField(serializers.ListField):
    """ListField that also accepts a JSON-encoded string.

    Multipart forms cannot carry nested objects, so clients send lists of
    objects as a JSON string in a single form field.
    """

    default_error_messages = {"invalid_json": "Value must be a valid JSON list."}

    def get_value(self, dictionary):
        if html.is_html_input(dictionary) and self.field_name in dictionary:
            value = dictionary.get(self.field_name)
            if isinstance(value, str):
                return value
        return super().get_value(dictionary)

    def to_internal_value(self, data):
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                self.fail("invalid_json")
        return super().to_internal_value(data)


# PUBLIC_INTERFACE
class GameCreateSerializer(serializers.Serializer):
    """Fields shared by every create request."""

    name = serializers.CharField(max_length=128, trim_whitespace=True)
    description = serializers.CharField(max_length=256, required=False, allow_blank=True, default="")
    thumbnail_image = serializers.FileField(required=False, validators=[_validate_upload_size])
    is_publish_immediately = serializers.BooleanField(required=False, default=False)


# PUBLIC_INTERFACE
class GameUpdateSerializer(serializers.Serializer):
    """Fields shared by every update request. Instantiate with partial=True."""

    name = serializers.CharField(max_length=128, trim_whitespace=True, required=False)
    description = serializers.CharField(max_length=256, required=False, allow_blank=True)
    thumbnail_image = serializers.FileField(required=False, validators=[_validate_upload_size])
    is_publish = serializers.BooleanField(required=False)


# PUBLIC_INTERFACE
class AnagramQuestionSerializer(serializers.Serializer):
    """One authored question.

    Fields:
    - question_id: update only; keeps the id (and image) of an existing question
    - correct_word: the answer, stored upper-cased
    - image_index: index into files_to_upload; required on create
    """

    question_id = serializers.CharField(required=False)
    correct_word = serializers.CharField(max_length=64)
    image_index = serializers.IntegerField(required=False, min_value=0)


# PUBLIC_INTERFACE
class AnagramCreateSerializer(GameCreateSerializer):
    """Request payload to create an anagram game (multipart)."""

    is_question_randomized = serializers.BooleanField(required=False, default=False)
    questions = JSONListField(child=AnagramQuestionSerializer(), allow_empty=False)
    files_to_upload = _file_list(allow_empty=False)


# PUBLIC_INTERFACE
class AnagramUpdateSerializer(GameUpdateSerializer):
    """Request payload to update an anagram game. Every field is optional."""

    is_question_randomized = serializers.BooleanField(required=False)
    questions = JSONListField(child=AnagramQuestionSerializer(), required=False, allow_empty=False)
    files_to_upload = _file_list(required=False)


# PUBLIC_INTERFACE
class AnagramAnswerSerializer(serializers.Serializer):
    question_id = serializers.CharField()
    guessed_word = serializers.CharField(allow_blank=True, trim_whitespace=False)
    is_hinted = serializers.ListField(child=serializers.BooleanField(), required=False, default=list)


# PUBLIC_INTERFACE
class AnagramCheckSerializer(serializers.Serializer):
    """Request payload to grade anagram answers."""

    answers = serializers.ListField(child=AnagramAnswerSerializer())


# PUBLIC_INTERFACE
class MatchingPairCreateSerializer(GameCreateSerializer):
    """Request payload to create a matching-pair game (multipart)."""

    thumbnail_image = serializers.FileField(validators=[_validate_upload_size])
    countdown = serializers.IntegerField(min_value=10, max_value=3600, help_text="Seconds allowed per play.")
    score_per_match = serializers.IntegerField(min_value=1, max_value=1000)
    files_to_upload = _file_list()


# PUBLIC_INTERFACE
class MatchingPairUpdateSerializer(GameUpdateSerializer):
    """Request payload to update a matching-pair game.

    existing_images lists the stored image paths to keep. Omitting it keeps
    every image. Because multipart forms cannot send an empty list, set
    clear_existing_images=true to drop all stored images.
    """

    countdown = serializers.IntegerField(min_value=10, max_value=3600, required=False)
    score_per_match = serializers.IntegerField(min_value=1, max_value=1000, required=False)
    files_to_upload = _file_list(required=False)
    existing_images = serializers.ListField(child=serializers.CharField(), required=False, allow_empty=True)
    clear_existing_images = serializers.BooleanField(required=False)

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        if attrs.pop("clear_existing_images", False):
            if attrs.get("existing_images"):
                raise serializers.ValidationError(
                    {"existing_images": "Cannot keep images while clear_existing_images is set."}
                )
            attrs["existing_images"] = []
        return attrs


# PUBLIC_INTERFACE
class MatchingPairCheckSerializer(serializers.Serializer):
    """Request payload to score a matching-pair play."""

    matched_pair_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=0), max_length=32, allow_empty=True
    )


# PUBLIC_INTERFACE
class GameSerializer(serializers.ModelSerializer):
    """Full stored game, for its creator or an admin."""

    kind = serializers.CharField(source="template.slug", read_only=True)
    creator = serializers.SerializerMethodField()

    class Meta:
        model = Game
        fields = [
            "id",
            "kind",
            "name",
            "description",
            "thumbnail_image",
            "is_published",
            "payload",
            "creator",
            "created_at",
            "updated_at",
        ]

    def get_creator(self, obj: Game) -> Dict[str, Any]:
        return {"id": obj.creator_id, "username": obj.creator.get_username()}


# PUBLIC_INTERFACE
class GameScoreCreateSerializer(serializers.Serializer):
    """Request payload to record a finished attempt."""

    game_id = serializers.UUIDField()
    score = serializers.IntegerField(min_value=0)
    max_combo = serializers.IntegerField(min_value=0, required=False, default=0)
    time_taken = serializers.IntegerField(min_value=0, help_text="Seconds spent on the attempt.")
    matched_pairs = serializers.IntegerField(min_value=0)
    total_pairs = serializers.IntegerField(min_value=1)


# PUBLIC_INTERFACE
class GameScoreSerializer(serializers.ModelSerializer):
    """A recorded attempt."""

    class Meta:
        model = GameScore
        fields = ["id", "score", "max_combo", "time_taken", "matched_pairs", "total_pairs", "created_at"]


# PUBLIC_INTERFACE
class LeaderboardEntrySerializer(GameScoreSerializer):
    """Leaderboard entry: an attempt plus the player."""

    user = serializers.SerializerMethodField()

    class Meta(GameScoreSerializer.Meta):
        fields = GameScoreSerializer.Meta.fields + ["user"]

    def get_user(self, obj: GameScore) -> Dict[str, Any]:
        return {"id": obj.user_id, "username": obj.user.get_username()}


# PUBLIC_INTERFACE
class LeaderboardQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    per_page = serializers.IntegerField(min_value=1, max_value=100, required=False, default=10)
