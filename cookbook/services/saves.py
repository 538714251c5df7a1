"""Service helpers for saving (liking) recipes."""

import logging
from typing import Any, Dict, List, Tuple

from cookbook.exceptions import NotFoundError
from cookbook.repos import get_recipe_repo

logger = logging.getLogger(__name__)


class SaveService:
    """Encapsulate the user-saves-recipe relation and its counter."""

    def __init__(self, *, repo=None) -> None:
        self.repo = get_recipe_repo() if repo is None else repo

    def toggle(self, recipe_id: str, user_id: str) -> Tuple[bool, int]:
        """Toggle save/unsave for a recipe; return (saved_now, saves)."""
        saved, saves = self.repo.toggle_save(recipe_id, user_id)
        logger.debug("User %s %s recipe %s (saves=%s)", user_id, "saved" if saved else "unsaved", recipe_id, saves)
        return saved, saves

    def is_saved(self, recipe_id: str, user_id: str) -> bool:
        return self.repo.is_saved(recipe_id, user_id)

    def saved_recipe_ids(self, user_id: str) -> List[str]:
        return self.repo.saved_recipe_ids(user_id)

    def saved_recipes(self, user_id: str) -> List[Dict[str, Any]]:
        """Return the recipes a user has saved, skipping ones deleted since."""
        recipes = []
        for recipe_id in self.repo.saved_recipe_ids(user_id):
            try:
                recipes.append(self.repo.get_recipe(recipe_id))
            except NotFoundError:
                logger.info("Saved recipe %s no longer exists", recipe_id)
        return recipes
