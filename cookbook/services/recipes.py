"""Service helpers for recipe creation, updates and deletion."""

import logging
from typing import Any, Dict, List, Mapping

from cookbook.exceptions import PermissionDeniedError
from cookbook.query import normalise_tags
from cookbook.repos import get_recipe_repo
from .tags import tag_changes

logger = logging.getLogger(__name__)

# maintained by the review and save services only
STORE_MANAGED_FIELDS = ("average_rating", "saves", "author_id")


class RecipeService:
    """Encapsulate recipe lifecycle and the tag counters it drives."""

    def __init__(self, *, repo=None) -> None:
        self.repo = get_recipe_repo() if repo is None else repo

    def create(self, author_id: str, fields: Mapping[str, Any]) -> str:
        """Store a new recipe for author_id and count its tags; return the id."""
        data = self._writable(fields)
        data["tags"] = normalise_tags(data.get("tags"))
        data["author_id"] = author_id
        recipe_id = self.repo.create_recipe_with_tags(data, data["tags"])
        logger.info("Created recipe %s for %s", recipe_id, author_id)
        return recipe_id

    def get(self, recipe_id: str) -> Dict[str, Any]:
        return self.repo.get_recipe(recipe_id)

    def list_all(self) -> List[Dict[str, Any]]:
        return self.repo.list_recipes()

    def update(self, recipe_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Write edited fields; tag edits move the counters by the difference."""
        data = self._writable(fields)
        with self.repo.atomic(recipe_id):
            if "tags" in data:
                current = self.repo.get_recipe(recipe_id)
                data["tags"] = normalise_tags(data["tags"])
                added, removed = tag_changes(current.get("tags") or [], data["tags"])
                self.repo.apply_tag_changes(recipe_id, added, removed)
            if data:
                self.repo.update_recipe(recipe_id, data)
        return self.repo.get_recipe(recipe_id)

    def delete(self, recipe_id: str, actor_id: str) -> None:
        """Delete a recipe on behalf of its author and release its tags."""
        with self.repo.atomic(recipe_id):
            recipe = self.repo.get_recipe(recipe_id)
            if recipe.get("authorId") != actor_id:
                raise PermissionDeniedError(f"{actor_id} is not the author of recipe {recipe_id}")
            self.repo.apply_tag_changes(recipe_id, [], normalise_tags(recipe.get("tags")))
            self.repo.delete_recipe(recipe_id)
        logger.info("Deleted recipe %s", recipe_id)

    def _writable(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in fields.items() if k not in STORE_MANAGED_FIELDS}
