"""Filtered, sorted reads over the recipe collection."""

import logging
from typing import Any, Dict, List

from cookbook.exceptions import QueryExecutionError
from cookbook.query import RecipeFilter, compose_query
from cookbook.repos import get_recipe_repo

logger = logging.getLogger(__name__)


class RecipeQueryService:
    """Compose filter requests into store queries and run them."""

    def __init__(self, *, repo=None) -> None:
        self.repo = get_recipe_repo() if repo is None else repo

    def search(self, recipe_filter: RecipeFilter) -> List[Dict[str, Any]]:
        """Return recipes matching every specified predicate, in the requested order."""
        query = compose_query(recipe_filter)
        try:
            return self.repo.execute(query)
        except QueryExecutionError as e:
            logger.warning("Recipe query %s failed: %s", query, e)
            raise

    def all_recipes(self) -> List[Dict[str, Any]]:
        """Unfiltered listing in store order."""
        return self.repo.list_recipes()

    def get(self, recipe_id: str) -> Dict[str, Any]:
        return self.repo.get_recipe(recipe_id)
