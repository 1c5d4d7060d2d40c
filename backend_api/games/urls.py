from django.urls import path

from .views import (
    best_score,
    check_answers,
    create_game,
    game_detail,
    health,
    leaderboard,
    list_templates,
    play_private,
    play_public,
    record_score,
)

urlpatterns = [
    path('health/', health, name='Health'),
    path('game/templates/', list_templates, name='game-templates'),
    path('game/game-type/<slug:kind>/', create_game, name='game-create'),
    path('game/game-type/<slug:kind>/<uuid:game_id>/', game_detail, name='game-detail'),
    path('game/game-type/<slug:kind>/<uuid:game_id>/play/public/', play_public, name='game-play-public'),
    path('game/game-type/<slug:kind>/<uuid:game_id>/play/private/', play_private, name='game-play-private'),
    path('game/game-type/<slug:kind>/<uuid:game_id>/check/', check_answers, name='game-check'),
    path('game/score/', record_score, name='score-create'),
    path('game/score/<uuid:game_id>/leaderboard/', leaderboard, name='score-leaderboard'),
    path('game/score/<uuid:game_id>/best/', best_score, name='score-best'),
]
