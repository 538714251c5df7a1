from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


def get_recipe_repo():
    """Return the recipe store selected by COOKBOOK_STORE_BACKEND."""
    backend = getattr(settings, "COOKBOOK_STORE_BACKEND", "orm")
    if backend == "orm":
        from .recipe_repo import RecipeRepo
        return RecipeRepo()
    if backend == "firestore":
        from .firestore_repo import FirestoreRecipeRepo
        return FirestoreRecipeRepo()
    raise ImproperlyConfigured(f"Unknown COOKBOOK_STORE_BACKEND: {backend!r}")
