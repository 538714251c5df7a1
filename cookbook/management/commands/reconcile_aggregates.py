from django.core.management.base import BaseCommand

from cookbook.services import ReconcileService


class Command(BaseCommand):
    """Recompute averageRating, saves and tag counters from their records."""

    help = 'Repairs drifted recipe ratings, save counts and tag counters'

    def add_arguments(self, parser):
        parser.add_argument("--recipe", dest="recipe_id", default=None, help="Only reconcile this recipe.")

    def handle(self, *args, **options):
        report = ReconcileService().reconcile(options["recipe_id"])
        for kind in ("ratings", "saves", "tags"):
            for key, (old, new) in sorted(report[kind].items()):
                self.stdout.write(f"{kind}: {key} {old} -> {new}")
        total = sum(len(changes) for changes in report.values())
        self.stdout.write(self.style.SUCCESS(f"Corrected {total} value(s)."))
