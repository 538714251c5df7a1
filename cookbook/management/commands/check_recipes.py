from django.core.management.base import BaseCommand

from cookbook.query import RecipeFilter
from cookbook.services import RecipeQueryService


class Command(BaseCommand):
    help = 'Lists stored recipes with their rating, saves and tags'

    def add_arguments(self, parser):
        parser.add_argument("--sort", default="", help="none, rating, title or saves.")
        parser.add_argument("--limit", type=int, default=None)

    def handle(self, *args, **options):
        recipes = RecipeQueryService().search(RecipeFilter(sort_by=options["sort"], limit=options["limit"]))
        for recipe in recipes:
            self.stdout.write(
                f"{recipe['id']}  {recipe.get('title')!r}  "
                f"rating={float(recipe.get('averageRating') or 0):.2f}  "
                f"saves={recipe.get('saves') or 0}  tags={', '.join(recipe.get('tags') or [])}"
            )
        self.stdout.write(self.style.SUCCESS(f"{len(recipes)} recipe(s)"))
