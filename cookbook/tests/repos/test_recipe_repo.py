from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase

from cookbook.exceptions import (
    AggregateUnavailableError,
    InvalidFilterError,
    NotFoundError,
    QueryExecutionError,
)
from cookbook.models import Recipe, RecipeTag, Review, Save, Tag
from cookbook.query import RecipeFilter, compose_query
from cookbook.repos.recipe_repo import RecipeRepo
from cookbook.tests.helpers import make_recipe, recipe_fixture


class RecipeRepoQueryTests(TestCase):
    def setUp(self):
        self.repo = RecipeRepo()
        self.recipes = recipe_fixture()

    def run_filter(self, **kwargs):
        return self.repo.execute(compose_query(RecipeFilter(**kwargs)))

    def ids(self, documents):
        return {d["id"] for d in documents}

    def key(self, name):
        return self.recipes[name].id

    def test_zero_rating_matches_absent_rating(self):
        self.assertEqual(self.ids(self.run_filter(min_rating=0)), self.ids(self.run_filter()))
        self.assertEqual(len(self.run_filter()), 6)

    def test_blank_title_and_empty_tags_match_absent(self):
        self.assertEqual(
            self.ids(self.run_filter(title_contains="", tags=[], author_id=None)),
            self.ids(self.run_filter()),
        )

    def test_title_containment_is_case_insensitive(self):
        self.assertEqual(self.ids(self.run_filter(title_contains="pasta")), {self.key("pasta"), self.key("pesto")})
        self.assertEqual(self.ids(self.run_filter(title_contains="APPLE")), {self.key("cake")})

    def test_rating_floor_is_inclusive(self):
        self.assertEqual(
            self.ids(self.run_filter(min_rating=4.0)),
            {self.key("pasta"), self.key("curry"), self.key("stew")},
        )

    def test_tags_match_any(self):
        self.assertEqual(
            self.ids(self.run_filter(tags=["vegan", "italian"])),
            {self.key("pasta"), self.key("pesto"), self.key("curry"), self.key("soup")},
        )

    def test_filters_are_conjunctive(self):
        result = self.run_filter(title_contains="a", min_rating=3.5, tags=["quick", "spicy"], author_id="alice")
        self.assertEqual(self.ids(result), {self.key("pasta"), self.key("curry")})

        documents = self.repo.list_recipes()
        wanted = {
            d["id"]
            for d in documents
            if "a" in d["title"].lower()
            and d["averageRating"] >= 3.5
            and set(d["tags"]) & {"quick", "spicy"}
            and d["authorId"] == "alice"
        }
        self.assertEqual(self.ids(result), wanted)

    def test_rating_sort_is_non_increasing_with_title_tie_break(self):
        result = self.run_filter(sort_by="rating-desc")
        ratings = [d["averageRating"] for d in result]
        self.assertEqual(ratings, sorted(ratings, reverse=True))
        tied = [d["title"] for d in result if d["averageRating"] == 4.0]
        self.assertEqual(tied, ["Bean Stew", "Chickpea Curry"])

    def test_title_sort_is_non_decreasing(self):
        titles = [d["title"] for d in self.run_filter(sort_by="title-asc")]
        self.assertEqual(titles, sorted(titles))

    def test_saves_sort_and_limit(self):
        result = self.run_filter(sort_by="saves", limit=2)
        self.assertEqual([d["id"] for d in result], [self.key("pesto"), self.key("cake")])

    def test_results_are_id_merged_documents(self):
        document = self.run_filter(title_contains="curry")[0]
        self.assertEqual(document["id"], self.key("curry"))
        self.assertEqual(document["authorId"], "alice")
        self.assertEqual(document["tags"], ["spicy", "vegan"])

    def test_store_failure_becomes_query_execution_error(self):
        with patch("django.db.models.query.QuerySet._fetch_all", side_effect=DatabaseError("locked")):
            with self.assertRaises(QueryExecutionError):
                self.run_filter()


class RecipeRepoCrudTests(TestCase):
    def setUp(self):
        self.repo = RecipeRepo()

    def test_create_get_update_delete(self):
        recipe_id = self.repo.create_recipe({"title": "Toast", "author_id": "a", "tags": ["quick"]})
        self.assertEqual(self.repo.get_recipe(recipe_id)["title"], "Toast")

        self.repo.update_recipe(recipe_id, {"title": "French Toast"})
        self.assertEqual(self.repo.get_recipe(recipe_id)["title"], "French Toast")

        self.repo.delete_recipe(recipe_id)
        with self.assertRaises(NotFoundError):
            self.repo.get_recipe(recipe_id)

    def test_missing_recipe_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            self.repo.update_recipe("missing", {"title": "x"})
        with self.assertRaises(NotFoundError):
            self.repo.delete_recipe("missing")
        with self.assertRaises(NotFoundError):
            with self.repo.atomic("missing"):
                pass

    def test_unknown_fields_are_rejected(self):
        with self.assertRaises(InvalidFilterError):
            self.repo.create_recipe({"title": "x", "author_id": "a", "colour": "red"})

    def test_recipe_ids(self):
        recipe = make_recipe()
        self.assertEqual(self.repo.recipe_ids(), [recipe.id])


class RecipeRepoReviewTests(TestCase):
    def setUp(self):
        self.repo = RecipeRepo()
        self.recipe = make_recipe()

    def test_upsert_keeps_one_review_per_user(self):
        self.repo.upsert_review(self.recipe.id, "u1", 2, "meh")
        review = self.repo.upsert_review(self.recipe.id, "u1", 5, "better")
        self.assertEqual(Review.objects.count(), 1)
        self.assertEqual(review["id"], f"{self.recipe.id}_u1")
        self.assertEqual(self.repo.get_review(self.recipe.id, "u1")["rating"], 5)
        self.assertIsNone(self.repo.get_review(self.recipe.id, "u2"))

    def test_average_rating(self):
        for user, rating in (("u1", 4), ("u2", 5), ("u3", 3)):
            self.repo.upsert_review(self.recipe.id, user, rating)
        self.assertEqual(self.repo.average_rating(self.recipe.id), 4.0)

    def test_average_without_reviews_is_unavailable(self):
        with self.assertRaises(AggregateUnavailableError):
            self.repo.average_rating(self.recipe.id)

    def test_reviews_for_user(self):
        other = make_recipe(title="Other")
        self.repo.upsert_review(self.recipe.id, "u1", 4)
        self.repo.upsert_review(other.id, "u1", 2)
        self.repo.upsert_review(other.id, "u2", 1)
        self.assertEqual(len(self.repo.reviews_for_user("u1")), 2)


class RecipeRepoSaveTests(TestCase):
    def setUp(self):
        self.repo = RecipeRepo()
        self.recipe = make_recipe(saves=4)

    def test_toggle_twice_restores_counter_and_removes_record(self):
        saved, saves = self.repo.toggle_save(self.recipe.id, "u1")
        self.assertTrue(saved)
        self.assertEqual(saves, 5)
        self.assertTrue(self.repo.is_saved(self.recipe.id, "u1"))

        saved, saves = self.repo.toggle_save(self.recipe.id, "u1")
        self.assertFalse(saved)
        self.assertEqual(saves, 4)
        self.assertFalse(Save.objects.filter(recipe_id=self.recipe.id, user_id="u1").exists())
        self.assertEqual(Recipe.objects.get(pk=self.recipe.id).saves, 4)

    def test_unsave_never_goes_below_zero(self):
        Save.objects.create(id=f"{self.recipe.id}_u1", recipe=self.recipe, user_id="u1")
        Recipe.objects.filter(pk=self.recipe.id).update(saves=0)
        saved, saves = self.repo.toggle_save(self.recipe.id, "u1")
        self.assertFalse(saved)
        self.assertEqual(saves, 0)

    def test_toggle_missing_recipe(self):
        with self.assertRaises(NotFoundError):
            self.repo.toggle_save("missing", "u1")

    def test_saved_ids_and_count(self):
        self.repo.toggle_save(self.recipe.id, "u1")
        self.repo.toggle_save(self.recipe.id, "u2")
        self.assertEqual(self.repo.saved_recipe_ids("u1"), [self.recipe.id])
        self.assertEqual(self.repo.count_saves(self.recipe.id), 2)


class RecipeRepoTagTests(TestCase):
    def setUp(self):
        self.repo = RecipeRepo()

    def test_popular_tags_rank_by_count_then_name(self):
        make_recipe(tags=["a", "b"])
        make_recipe(tags=["a"])
        make_recipe(tags=["b", "c"])
        self.assertEqual(self.repo.popular_tags(2), [("a", 2), ("b", 2)])
        self.assertEqual(self.repo.top_tags(2), [("a", 2), ("b", 2)])

    def test_popular_tags_for_one_author(self):
        make_recipe("alice", tags=["x"])
        make_recipe("bob", tags=["y", "y"])
        self.assertEqual(self.repo.popular_tags(10, author_id="bob"), [("y", 1)])

    def test_apply_tag_changes_moves_counters(self):
        recipe = make_recipe(tags=["a"])
        self.repo.apply_tag_changes(recipe.id, ["b"], ["a"])
        self.assertEqual(Tag.objects.get(name="a").total_recipes, 0)
        self.assertEqual(Tag.objects.get(name="b").total_recipes, 1)
        self.assertEqual(list(RecipeTag.objects.values_list("tag_id", flat=True)), ["b"])

    def test_repeated_add_and_remove_do_not_double_count(self):
        recipe = make_recipe(tags=["a"])
        self.repo.apply_tag_changes(recipe.id, ["a"], [])
        self.assertEqual(Tag.objects.get(name="a").total_recipes, 1)
        self.repo.apply_tag_changes(recipe.id, [], ["a"])
        self.repo.apply_tag_changes(recipe.id, [], ["a"])
        self.assertEqual(Tag.objects.get(name="a").total_recipes, 0)

    def test_top_tags_skip_unused(self):
        Tag.objects.create(name="stale", total_recipes=0)
        make_recipe(tags=["fresh"])
        self.assertEqual(self.repo.top_tags(5), [("fresh", 1)])

    def test_recount_tags_repairs_links_and_counters(self):
        recipe = make_recipe(tags=["a", "b"])
        Tag.objects.filter(name="a").update(total_recipes=9)
        RecipeTag.objects.filter(tag_id="b").delete()
        Recipe.objects.filter(pk=recipe.id).update(tags=["a", "b", "c"])

        corrections = self.repo.recount_tags()

        self.assertEqual(corrections, {"a": (9, 1), "c": (0, 1)})
        self.assertEqual(
            dict(Tag.objects.values_list("name", "total_recipes")), {"a": 1, "b": 1, "c": 1}
        )
        self.assertEqual(RecipeTag.objects.filter(recipe_id=recipe.id).count(), 3)
