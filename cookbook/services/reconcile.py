"""Recompute denormalized aggregates from their source-of-truth records."""

import logging
from typing import Any, Dict, Optional

from cookbook.exceptions import AggregateUnavailableError
from cookbook.repos import get_recipe_repo

logger = logging.getLogger(__name__)

RATING_TOLERANCE = 1e-9


class ReconcileService:
    """Detect and repair drift in averageRating, saves and tag counters."""

    def __init__(self, *, repo=None) -> None:
        self.repo = get_recipe_repo() if repo is None else repo

    def reconcile(self, recipe_id: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
        """
        Repair one recipe (or every recipe plus the tag counters).

        Returns {"ratings": {id: (old, new)}, "saves": {id: (old, new)},
        "tags": {name: (old, new)}} listing only the values that changed.
        """
        report: Dict[str, Dict[str, Any]] = {"ratings": {}, "saves": {}, "tags": {}}
        recipe_ids = [recipe_id] if recipe_id else self.repo.recipe_ids()
        for rid in recipe_ids:
            self._reconcile_recipe(rid, report)
        if recipe_id is None:
            report["tags"] = self.repo.recount_tags()
        for kind, changes in report.items():
            if changes:
                logger.warning("Reconciled %d %s drift(s): %s", len(changes), kind, changes)
        return report

    def _reconcile_recipe(self, recipe_id: str, report: Dict[str, Dict[str, Any]]) -> None:
        recipe = self.repo.get_recipe(recipe_id)

        try:
            average = self.repo.average_rating(recipe_id)
        except AggregateUnavailableError:
            average = 0.0
        stored_average = float(recipe.get("averageRating") or 0.0)
        if abs(stored_average - average) > RATING_TOLERANCE:
            self.repo.set_average_rating(recipe_id, average)
            report["ratings"][recipe_id] = (stored_average, average)

        saves = self.repo.count_saves(recipe_id)
        stored_saves = int(recipe.get("saves") or 0)
        if stored_saves != saves:
            self.repo.set_saves(recipe_id, saves)
            report["saves"][recipe_id] = (stored_saves, saves)
