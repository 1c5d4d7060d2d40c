from __future__ import annotations

from typing import Any, Dict, Type

from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema
from rest_framework import permissions, serializers, status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from . import services
from .engine import NotFoundError, Requester, VariantRegistry
from .models import GameTemplate, GameTemplateKind
from .serializers import (
    AnagramCheckSerializer,
    AnagramCreateSerializer,
    AnagramUpdateSerializer,
    GameScoreCreateSerializer,
    GameScoreSerializer,
    GameSerializer,
    LeaderboardEntrySerializer,
    LeaderboardQuerySerializer,
    MatchingPairCheckSerializer,
    MatchingPairCreateSerializer,
    MatchingPairUpdateSerializer,
)

ANAGRAM = GameTemplateKind.ANAGRAM.value
MATCHING_PAIR = GameTemplateKind.MATCHING_PAIR.value

CREATE_SERIALIZERS: Dict[str, Type[serializers.Serializer]] = {
    ANAGRAM: AnagramCreateSerializer,
    MATCHING_PAIR: MatchingPairCreateSerializer,
}
UPDATE_SERIALIZERS: Dict[str, Type[serializers.Serializer]] = {
    ANAGRAM: AnagramUpdateSerializer,
    MATCHING_PAIR: MatchingPairUpdateSerializer,
}
CHECK_SERIALIZERS: Dict[str, Type[serializers.Serializer]] = {
    ANAGRAM: AnagramCheckSerializer,
    MATCHING_PAIR: MatchingPairCheckSerializer,
}

UPLOAD_PARSERS = [MultiPartParser, FormParser, JSONParser]

_kind_param = openapi.Parameter(
    "kind", openapi.IN_PATH, type=openapi.TYPE_STRING, enum=[ANAGRAM, MATCHING_PAIR], required=True
)


def _serializer_for(mapping: Dict[str, Type[serializers.Serializer]], kind: str) -> Type[serializers.Serializer]:
    """Unknown kinds are reported like missing games."""
    if kind not in mapping:
        raise NotFoundError("Game template not found")
    return mapping[kind]


def _split_uploads(validated: Dict[str, Any]):
    """Separate uploaded files from the rest of the validated data."""
    data = dict(validated)
    files = data.pop("files_to_upload", None) or []
    thumbnail = data.pop("thumbnail_image", None)
    return data, files, thumbnail


# PUBLIC_INTERFACE
@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def health(request):
    """Health check endpoint for the API.

    Returns:
    - 200 OK with {"message": "Server is up!"}
    """
    return Response({"message": "Server is up!"})


# PUBLIC_INTERFACE
@swagger_auto_schema(
    method="get",
    operation_id="list_templates",
    operation_summary="List game templates",
    tags=["meta"],
)
@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def list_templates(request):
    """List the game templates that have a registered variant handler."""
    kinds = VariantRegistry.kinds()
    templates = GameTemplate.objects.filter(slug__in=kinds).values("slug", "name", "description")
    return Response(list(templates), status=status.HTTP_200_OK)


# PUBLIC_INTERFACE
@swagger_auto_schema(
    method="post",
    operation_id="create_game",
    operation_summary="Create a game of the given kind",
    operation_description="""
Multipart request. Common fields: name, description, thumbnail_image,
is_publish_immediately.

anagram: is_question_randomized, questions (JSON list of
{correct_word, image_index}), files_to_upload (one image per question).

matching-pair: countdown, score_per_match, thumbnail_image (required),
files_to_upload (2 to 32 images).

Response: {"id": game id}
""",
    manual_parameters=[_kind_param],
    tags=["game"],
)
@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated])
@parser_classes(UPLOAD_PARSERS)
def create_game(request, kind: str):
    """Create a game from authored input and uploaded images."""
    serializer = _serializer_for(CREATE_SERIALIZERS, kind)(data=request.data)
    serializer.is_valid(raise_exception=True)
    data, files, thumbnail = _split_uploads(serializer.validated_data)

    game = services.create_game(kind, data, files, request.user, thumbnail=thumbnail)
    return Response({"id": str(game.pk)}, status=status.HTTP_201_CREATED)


# PUBLIC_INTERFACE
@swagger_auto_schema(
    method="get",
    operation_id="game_detail",
    operation_summary="Get the stored game (creator or admin)",
    manual_parameters=[_kind_param],
    responses={200: GameSerializer},
    tags=["game"],
)
@swagger_auto_schema(
    method="patch",
    operation_id="update_game",
    operation_summary="Partially update a game (creator or admin)",
    operation_description="""
Only sent fields change. Common fields: name, description, thumbnail_image,
is_publish.

anagram: is_question_randomized, questions (JSON list of
{question_id?, correct_word, image_index?}), files_to_upload.

matching-pair: countdown, score_per_match, files_to_upload, existing_images
(paths to keep; omit to keep all), clear_existing_images (drop all stored images).
""",
    manual_parameters=[_kind_param],
    tags=["game"],
)
@swagger_auto_schema(
    method="delete",
    operation_id="delete_game",
    operation_summary="Delete a game and its assets (creator or admin)",
    manual_parameters=[_kind_param],
    tags=["game"],
)
@api_view(["GET", "PATCH", "DELETE"])
@permission_classes([permissions.IsAuthenticated])
@parser_classes(UPLOAD_PARSERS)
def game_detail(request, kind: str, game_id):
    """Read, update or delete one game. Only its creator or an admin may do so."""
    requester = Requester.from_user(request.user)

    if request.method == "GET":
        game = services.get_game_detail(kind, game_id, requester)
        return Response(GameSerializer(game).data, status=status.HTTP_200_OK)

    if request.method == "DELETE":
        services.delete_game(kind, game_id, requester)
        return Response({"id": str(game_id)}, status=status.HTTP_200_OK)

    serializer = _serializer_for(UPDATE_SERIALIZERS, kind)(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    data, files, thumbnail = _split_uploads(serializer.validated_data)
    game = services.update_game(kind, game_id, data, files, requester, thumbnail=thumbnail)
    return Response({"id": str(game.pk)}, status=status.HTTP_200_OK)


# PUBLIC_INTERFACE
@swagger_auto_schema(
    method="get",
    operation_id="play_public",
    operation_summary="Play view of a published game",
    operation_description="Shuffled questions or deck. Answers are not included.",
    manual_parameters=[_kind_param],
    tags=["play"],
)
@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def play_public(request, kind: str, game_id):
    """Play view for anyone, available once the game is published."""
    view = services.get_play_view(kind, game_id, Requester.from_user(request.user), is_public=True)
    return Response(view, status=status.HTTP_200_OK)


# PUBLIC_INTERFACE
@swagger_auto_schema(
    method="get",
    operation_id="play_private",
    operation_summary="Play view for the creator or an admin",
    operation_description="Works for unpublished games and includes the answers.",
    manual_parameters=[_kind_param],
    tags=["play"],
)
@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated])
def play_private(request, kind: str, game_id):
    """Preview of a game for its creator or an admin."""
    view = services.get_play_view(kind, game_id, Requester.from_user(request.user), is_public=False)
    return Response(view, status=status.HTTP_200_OK)


# PUBLIC_INTERFACE
@swagger_auto_schema(
    method="post",
    operation_id="check_answers",
    operation_summary="Grade submitted answers",
    operation_description="""
anagram body: {"answers": [{"question_id", "guessed_word", "is_hinted": [bool, ...]}]}

matching-pair body: {"matched_pair_ids": [int, ...]}

Response: score, max_score, percentage plus variant-specific details.
""",
    manual_parameters=[_kind_param],
    tags=["play"],
)
@api_view(["POST"])
@permission_classes([permissions.AllowAny])
def check_answers(request, kind: str, game_id):
    """Score answers without recording anything."""
    serializer = _serializer_for(CHECK_SERIALIZERS, kind)(data=request.data or {})
    serializer.is_valid(raise_exception=True)
    result = services.check_answers(kind, game_id, serializer.validated_data)
    return Response(result, status=status.HTTP_200_OK)


# PUBLIC_INTERFACE
@swagger_auto_schema(
    method="post",
    operation_id="record_score",
    operation_summary="Record a finished attempt",
    request_body=GameScoreCreateSerializer,
    responses={201: GameScoreSerializer},
    tags=["score"],
)
@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated])
def record_score(request):
    """Append the caller's attempt for a published game."""
    serializer = GameScoreCreateSerializer(data=request.data or {})
    serializer.is_valid(raise_exception=True)
    attempt = services.record_score(serializer.validated_data, request.user)
    return Response(GameScoreSerializer(attempt).data, status=status.HTTP_201_CREATED)


# PUBLIC_INTERFACE
@swagger_auto_schema(
    method="get",
    operation_id="leaderboard",
    operation_summary="Leaderboard of a game",
    operation_description="""
Sorted by score (desc), then time taken (asc), then earliest submission.

Response: {"data": [entries], "meta": {total, current_page, per_page, last_page, prev, next}}
""",
    manual_parameters=[
        openapi.Parameter("page", openapi.IN_QUERY, type=openapi.TYPE_INTEGER, required=False),
        openapi.Parameter("per_page", openapi.IN_QUERY, type=openapi.TYPE_INTEGER, required=False),
    ],
    tags=["score"],
)
@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def leaderboard(request, game_id):
    """Paginated ranking of every attempt recorded for a game."""
    query = LeaderboardQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    page = services.get_leaderboard(game_id, query.validated_data["page"], query.validated_data["per_page"])
    return Response(
        {"data": LeaderboardEntrySerializer(page["data"], many=True).data, "meta": page["meta"]},
        status=status.HTTP_200_OK,
    )


# PUBLIC_INTERFACE
@swagger_auto_schema(
    method="get",
    operation_id="best_score",
    operation_summary="Caller's personal best on a game",
    operation_description='Response: {"data": attempt}, with data null when the caller has no attempt.',
    tags=["score"],
)
@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated])
def best_score(request, game_id):
    """Return {"data": best attempt} for the caller, with data null when they have none."""
    attempt = services.get_best_score(game_id, request.user)
    data = GameScoreSerializer(attempt).data if attempt is not None else None
    return Response({"data": data}, status=status.HTTP_200_OK)
