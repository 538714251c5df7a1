"""Management command to seed the recipe store with sample recipes, reviews and saves."""

from random import choice, randint, sample
from typing import List

from faker import Faker
from django.core.management.base import BaseCommand

from cookbook.services import RecipeService, ReviewService, SaveService
from .seed_data import (
    BASE_INGREDIENT_POOL,
    SEED_AUTHOR_PREFIX,
    cook_times,
    prep_times,
    recipe_titles,
    review_phrases,
    servings_pool,
    tags_pool,
    user_fixtures,
)


class Command(BaseCommand):
    """Management command to seed the store with sample recipes and activity."""
    RECIPE_COUNT = 12
    USER_COUNT = 10
    help = 'Seeds the recipe store with sample data'

    def add_arguments(self, parser):
        parser.add_argument("--recipes", type=int, default=self.RECIPE_COUNT, help="Number of recipes to create.")
        parser.add_argument("--users", type=int, default=self.USER_COUNT, help="Number of sample user ids.")

    def __init__(self, *args, **kwargs):
        """Set up faker instance for generating seed content."""
        super().__init__(*args, **kwargs)
        self.faker = Faker('en_GB')

    def handle(self, *args, **options):
        """Run the full seeding sequence."""
        users = self.user_ids(max(1, options["users"]))
        recipe_ids = self.seed_recipes(options["recipes"], users)
        self.seed_reviews(recipe_ids, users)
        self.seed_saves(recipe_ids, users)
        self.stdout.write(self.style.SUCCESS(f"Seeded {len(recipe_ids)} recipes for {len(users)} users"))

    def user_ids(self, count: int) -> List[str]:
        """Fixture user ids topped up with random ones."""
        users = list(user_fixtures[:count])
        while len(users) < count:
            users.append(f"{SEED_AUTHOR_PREFIX}{self.faker.unique.user_name()}")
        return users

    def seed_recipes(self, count: int, users: List[str]) -> List[str]:
        service = RecipeService()
        recipe_ids = []
        for i in range(count):
            title = recipe_titles[i] if i < len(recipe_titles) else self.faker.sentence(nb_words=3).rstrip(".")
            fields = {
                "title": title,
                "instructions": "\n".join(self.faker.sentences(nb=randint(3, 6))),
                "ingredients": sample(BASE_INGREDIENT_POOL, randint(3, 7)),
                "tags": sample(tags_pool, randint(1, 3)),
                "prep_time": choice(prep_times),
                "cook_time": choice(cook_times),
                "servings": choice(servings_pool),
            }
            recipe_ids.append(service.create(choice(users), fields))
        return recipe_ids

    def seed_reviews(self, recipe_ids: List[str], users: List[str]):
        service = ReviewService()
        for recipe_id in recipe_ids:
            for user in sample(users, randint(0, len(users))):
                service.submit(recipe_id, user, randint(1, 5), choice(review_phrases))

    def seed_saves(self, recipe_ids: List[str], users: List[str]):
        service = SaveService()
        for recipe_id in recipe_ids:
            for user in sample(users, randint(0, len(users))):
                service.toggle(recipe_id, user)
