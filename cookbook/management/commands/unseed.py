from django.core.management.base import BaseCommand

from cookbook.services import RecipeService
from .seed_data import SEED_AUTHOR_PREFIX


class Command(BaseCommand):
    """
    Remove the recipes written by seeded sample users.

    Recipes are deleted through the recipe service, so their reviews and
    saves go with them and the tag counters are released.
    """

    help = 'Removes seeded sample data'

    def handle(self, *args, **options):
        service = RecipeService()
        deleted = 0
        for recipe in service.list_all():
            author_id = recipe.get("authorId") or ""
            if author_id.startswith(SEED_AUTHOR_PREFIX):
                service.delete(recipe["id"], author_id)
                deleted += 1
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} seeded recipes and related data."))
