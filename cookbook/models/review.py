"""Model for one user's rating of one recipe."""

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Review(models.Model):
    """User rating (and optional comment) keyed by "<recipeId>_<userId>"."""
    id = models.CharField(primary_key=True, max_length=200, editable=False)

    recipe = models.ForeignKey(
        "cookbook.Recipe",
        on_delete=models.CASCADE,
        db_column="recipe_id",
        related_name="reviews",
    )
    user_id = models.CharField(max_length=128, db_index=True)

    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    text = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Enforce one review per user/recipe pair."""
        db_table = "review"
        constraints = [
            models.UniqueConstraint(
                fields=["recipe", "user_id"],
                name="uniq_review_recipe_user",
            ),
        ]

    def __str__(self):
        return f"{self.user_id} rated {self.recipe_id}: {self.rating}"

    def to_document(self):
        return {
            "id": self.id,
            "recipeId": self.recipe_id,
            "userId": self.user_id,
            "rating": self.rating,
            "text": self.text,
        }
