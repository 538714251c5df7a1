from .recipe import Recipe
from .tag import Tag, RecipeTag
from .review import Review
from .save import Save

__all__ = [
    "Recipe",
    "Tag",
    "RecipeTag",
    "Review",
    "Save",
]
