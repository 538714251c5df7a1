"""Reference-counted tag entity and its join rows to recipes."""

from django.db import models


class Tag(models.Model):
    """A tag label with a running count of recipes that carry it."""
    name = models.CharField(primary_key=True, max_length=100)
    total_recipes = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "tag"
        indexes = [
            models.Index(fields=["-total_recipes", "name"], name="tag_total_name_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.total_recipes})"


class RecipeTag(models.Model):
    """Join row linking a recipe to one of its tags."""
    recipe = models.ForeignKey(
        "cookbook.Recipe",
        on_delete=models.CASCADE,
        related_name="tag_links",
        db_column="recipe_id",
    )
    tag = models.ForeignKey(
        Tag,
        on_delete=models.CASCADE,
        related_name="recipe_links",
        db_column="tag_name",
    )

    class Meta:
        db_table = "recipe_tag"
        constraints = [
            models.UniqueConstraint(
                fields=["recipe", "tag"],
                name="uniq_recipe_tag",
            ),
        ]

    def __str__(self):
        return f"{self.recipe_id} → {self.tag_id}"
