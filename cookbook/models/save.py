"""Model representing a user's save (like / favourite) of a recipe."""

from django.db import models


class Save(models.Model):
    """Membership record keyed by "<recipeId>_<userId>"."""
    id = models.CharField(primary_key=True, max_length=200, editable=False)

    recipe = models.ForeignKey(
        "cookbook.Recipe",
        on_delete=models.CASCADE,
        db_column="recipe_id",
        related_name="save_records",
    )
    user_id = models.CharField(max_length=128, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Enforce one save per user/recipe pair."""
        db_table = "save"
        constraints = [
            models.UniqueConstraint(
                fields=["recipe", "user_id"],
                name="uniq_save_recipe_user",
            ),
        ]

    def __str__(self):
        return f"{self.user_id} → {self.recipe_id}"
