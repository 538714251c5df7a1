from .recipe_query import RecipeQueryService
from .recipes import RecipeService
from .reviews import ReviewService
from .saves import SaveService
from .tags import TagService
from .reconcile import ReconcileService
from .generation import RecipeGenerationService

__all__ = [
    "RecipeQueryService",
    "RecipeService",
    "ReviewService",
    "SaveService",
    "TagService",
    "ReconcileService",
    "RecipeGenerationService",
]
