from django.db import IntegrityError
from django.test import TestCase

from cookbook.models import Recipe, RecipeTag, Review, Save, Tag
from cookbook.models import recipe as recipe_module


class RecipeModelTests(TestCase):
    def setUp(self):
        self.recipe = Recipe.objects.create(
            title="Soup", author_id="alice", tags=["warm"], prep_time="5 min", image_uri="https://img/soup.png"
        )

    def test_id_is_assigned(self):
        self.assertTrue(self.recipe.id)
        self.assertEqual(str(self.recipe), "Soup")

    def test_module_is_documented(self):
        self.assertIn("Recipe model", recipe_module.__doc__)

    def test_to_document(self):
        document = self.recipe.to_document()
        self.assertEqual(document["id"], self.recipe.id)
        self.assertEqual(document["authorId"], "alice")
        self.assertEqual(document["averageRating"], 0.0)
        self.assertEqual(document["saves"], 0)
        self.assertEqual(document["prepTime"], "5 min")
        self.assertEqual(document["imageUri"], "https://img/soup.png")

    def test_one_review_per_user(self):
        Review.objects.create(id="a", recipe=self.recipe, user_id="u1", rating=4)
        with self.assertRaises(IntegrityError):
            Review.objects.create(id="b", recipe=self.recipe, user_id="u1", rating=2)

    def test_one_save_per_user(self):
        Save.objects.create(id="a", recipe=self.recipe, user_id="u1")
        with self.assertRaises(IntegrityError):
            Save.objects.create(id="b", recipe=self.recipe, user_id="u1")

    def test_one_link_per_tag(self):
        tag = Tag.objects.create(name="warm")
        RecipeTag.objects.create(recipe=self.recipe, tag=tag)
        with self.assertRaises(IntegrityError):
            RecipeTag.objects.create(recipe=self.recipe, tag=tag)

    def test_review_document(self):
        review = Review.objects.create(id=f"{self.recipe.id}_u1", recipe=self.recipe, user_id="u1", rating=5, text="hi")
        self.assertEqual(
            review.to_document(),
            {"id": f"{self.recipe.id}_u1", "recipeId": self.recipe.id, "userId": "u1", "rating": 5, "text": "hi"},
        )
