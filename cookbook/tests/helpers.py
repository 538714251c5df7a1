from types import SimpleNamespace
from unittest.mock import MagicMock

from cookbook.models import Recipe
from cookbook.repos.recipe_repo import RecipeRepo
from cookbook.services import RecipeService


def make_recipe(author_id="author-1", **fields):
    """Create a recipe through the service so its tag links and counters exist."""
    data = {"title": "Recipe", "instructions": "Cook it.", "ingredients": ["salt"]}
    average_rating = fields.pop("average_rating", None)
    saves = fields.pop("saves", None)
    data.update(fields)
    recipe_id = RecipeService(repo=RecipeRepo()).create(author_id, data)
    stored = {}
    if average_rating is not None:
        stored["average_rating"] = average_rating
    if saves is not None:
        stored["saves"] = saves
    if stored:
        Recipe.objects.filter(pk=recipe_id).update(**stored)
    return Recipe.objects.get(pk=recipe_id)


def recipe_fixture():
    """Six recipes whose title, rating, tag and author predicates overlap partially."""
    return {
        "pasta": make_recipe("alice", title="Garlic Pasta", tags=["quick", "italian"], average_rating=4.5, saves=3),
        "pesto": make_recipe("bob", title="Pesto Pasta Salad", tags=["italian"], average_rating=3.0, saves=7),
        "curry": make_recipe("alice", title="Chickpea Curry", tags=["spicy", "vegan"], average_rating=4.0, saves=1),
        "soup": make_recipe("carol", title="Tomato Soup", tags=["quick", "vegan"], average_rating=2.5, saves=0),
        "cake": make_recipe("bob", title="apple cake", tags=[], average_rating=0.0, saves=5),
        "stew": make_recipe("carol", title="Bean Stew", tags=["spicy"], average_rating=4.0, saves=2),
    }


def snapshot(doc_id, data, exists=True):
    """Stand-in for a Firestore DocumentSnapshot."""
    return SimpleNamespace(
        id=doc_id,
        exists=exists,
        to_dict=lambda: dict(data) if exists else None,
        reference=MagicMock(name=f"ref-{doc_id}"),
    )


def aggregate_result(alias, value):
    """Shape of an aggregation query's `.get()` result."""
    return [[SimpleNamespace(alias=alias, value=value)]]
