from django.db import migrations

TEMPLATES = [
    ("anagram", "Anagram", "Unscramble the letters to spell the word shown in the picture."),
    ("matching-pair", "Matching Pair", "Flip the cards and find every pair of identical images."),
]


def seed_templates(apps, schema_editor):
    GameTemplate = apps.get_model("games", "GameTemplate")
    for slug, name, description in TEMPLATES:
        GameTemplate.objects.get_or_create(slug=slug, defaults={"name": name, "description": description})


def unseed_templates(apps, schema_editor):
    GameTemplate = apps.get_model("games", "GameTemplate")
    GameTemplate.objects.filter(slug__in=[slug for slug, _, _ in TEMPLATES], games__isnull=True).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("games", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_templates, unseed_templates),
    ]
