from django.contrib import admin

from .models import Game, GameScore, GameTemplate


@admin.register(GameTemplate)
class GameTemplateAdmin(admin.ModelAdmin):
    list_display = ("slug", "name", "created_at")
    search_fields = ("slug", "name")
    ordering = ("slug",)


class GameScoreInline(admin.TabularInline):
    model = GameScore
    extra = 0
    fields = ("user", "score", "max_combo", "time_taken", "matched_pairs", "total_pairs", "created_at")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Game)
class GameAdmin(admin.ModelAdmin):
    list_display = ("name", "template", "creator", "is_published", "created_at", "updated_at")
    list_filter = ("is_published", "template")
    search_fields = ("name", "creator__username")
    inlines = [GameScoreInline]
    readonly_fields = ("id", "template", "payload", "created_at", "updated_at")


@admin.register(GameScore)
class GameScoreAdmin(admin.ModelAdmin):
    list_display = ("game", "user", "score", "time_taken", "max_combo", "created_at")
    search_fields = ("game__name", "user__username")
    ordering = ("game", "-score", "time_taken", "created_at")
    readonly_fields = ("id", "user", "game", "score", "max_combo", "time_taken", "matched_pairs", "total_pairs", "created_at")

    def has_change_permission(self, request, obj=None):
        return False
