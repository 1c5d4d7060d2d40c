from django.core.management.base import BaseCommand

from games.seed_utils import ensure_templates


class Command(BaseCommand):
    help = "Create the game templates (anagram, matching-pair) if they are missing."

    def handle(self, *args, **options):
        # Idempotent: existing templates are left untouched.
        created = ensure_templates()
        if created == 0:
            self.stdout.write(self.style.WARNING("All game templates already present. No action taken."))
            return
        self.stdout.write(self.style.SUCCESS(f"Seeded {created} game template(s)."))
