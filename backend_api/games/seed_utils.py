from typing import List, Tuple

from django.db import transaction

from .models import GameTemplate, GameTemplateKind

DEFAULT_TEMPLATES: List[Tuple[str, str, str]] = [
    (GameTemplateKind.ANAGRAM, "Anagram", "Unscramble the letters to spell the word shown in the picture."),
    (GameTemplateKind.MATCHING_PAIR, "Matching Pair", "Flip the cards and find every pair of identical images."),
]


# PUBLIC_INTERFACE
def ensure_templates() -> int:
    """Ensure a GameTemplate row exists for every supported kind.

    Returns number of templates inserted (0 if all were already present).
    """
    created = 0
    with transaction.atomic():
        for slug, name, description in DEFAULT_TEMPLATES:
            _, was_created = GameTemplate.objects.get_or_create(
                slug=slug, defaults={"name": name, "description": description}
            )
            created += int(was_created)
    return created
