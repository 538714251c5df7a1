"""
Review submission and average-rating recompute.

`Recipe.averageRating` is a cache of the mean over the recipe's reviews.
Submitting a review upserts the (recipe, user) record, reads the mean back
from the store and writes it onto the recipe. When the mean is not yet
visible the submitted rating stands in for it; when the read fails the stored
average is left as it was. Neither case undoes the review itself.

On the ORM store the whole sequence runs with the recipe row locked, so two
reviewers of the same recipe cannot interleave. The Firestore store has no
such lock; drift there is repaired by the reconcile service.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from cookbook.exceptions import AggregateUnavailableError, InvalidFilterError, QueryExecutionError
from cookbook.repos import get_recipe_repo

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class ReviewService:
    """Encapsulate review writes and the rating aggregate they feed."""

    def __init__(self, *, repo=None) -> None:
        self.repo = get_recipe_repo() if repo is None else repo

    def submit(
        self, recipe_id: str, user_id: str, rating, text: str = ""
    ) -> Tuple[Dict[str, Any], Optional[float]]:
        """Upsert a review and refresh the recipe's average; return (review, average)."""
        rating = self._validate_rating(rating)
        with self.repo.atomic(recipe_id):
            review = self.repo.upsert_review(recipe_id, user_id, rating, text)
            average = self._recompute_average(recipe_id, rating)
        return review, average

    def get_user_rating(self, recipe_id: str, user_id: str) -> int:
        """Return the user's rating for a recipe, 0 when they have not rated it."""
        review = self.repo.get_review(recipe_id, user_id)
        return int(review["rating"]) if review else 0

    def reviews_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        return self.repo.reviews_for_user(user_id)

    def _recompute_average(self, recipe_id: str, submitted: int) -> Optional[float]:
        try:
            average = self.repo.average_rating(recipe_id)
        except AggregateUnavailableError:
            logger.info("No visible ratings for %s yet; using submitted rating %s", recipe_id, submitted)
            average = float(submitted)
        except QueryExecutionError as e:
            logger.warning("Average rating recompute failed for %s: %s", recipe_id, e)
            return None
        try:
            self.repo.set_average_rating(recipe_id, average)
        except QueryExecutionError as e:
            logger.warning("Could not store average rating for %s: %s", recipe_id, e)
            return None
        return average

    def _validate_rating(self, rating) -> int:
        if isinstance(rating, bool):
            raise InvalidFilterError("rating must be a number")
        try:
            value = float(rating)
        except (TypeError, ValueError):
            raise InvalidFilterError(f"rating must be a number, got {rating!r}")
        if not value.is_integer() or not MIN_RATING <= value <= MAX_RATING:
            raise InvalidFilterError(f"rating must be a whole number from {MIN_RATING} to {MAX_RATING}")
        return int(value)
