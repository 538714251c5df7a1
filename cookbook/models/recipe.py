"""
Recipe model

One row per recipe document. Field names follow Python conventions; the
document (camelCase) shape shared with the Firestore backend is produced by
`to_document()`.

- `author_id` is the owning user's Firebase uid, not a foreign key.
- `tags` keeps the author's ordering for display. Filtering and ranking use
  the `RecipeTag` join rows, which the recipe service keeps in step.
- `average_rating` and `saves` are denormalized aggregates. The `Review` and
  `Save` tables are the source of truth; see the reconcile service.
"""

from django.db import models

from cookbook.utils import new_document_id


class Recipe(models.Model):
    id = models.CharField(primary_key=True, max_length=64, default=new_document_id, editable=False)

    title = models.CharField(max_length=255)
    instructions = models.TextField(blank=True, default="")
    ingredients = models.JSONField(default=list, blank=True)
    author_id = models.CharField(max_length=128, db_index=True)
    tags = models.JSONField(default=list, blank=True)

    average_rating = models.FloatField(default=0.0)
    saves = models.PositiveIntegerField(default=0)

    # display strings, e.g. "15 min", "4 people"
    prep_time = models.CharField(max_length=64, blank=True, default="")
    cook_time = models.CharField(max_length=64, blank=True, default="")
    servings = models.CharField(max_length=64, blank=True, default="")

    image_uri = models.URLField(max_length=1000, blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "recipe"
        indexes = [
            models.Index(fields=["average_rating"], name="recipe_avg_rating_idx"),
            models.Index(fields=["saves"], name="recipe_saves_idx"),
            models.Index(fields=["title"], name="recipe_title_idx"),
        ]

    def __str__(self):
        return self.title

    def to_document(self):
        """Return the recipe as an id-merged document dict."""
        return {
            "id": self.id,
            "title": self.title,
            "instructions": self.instructions,
            "ingredients": list(self.ingredients or []),
            "authorId": self.author_id,
            "tags": list(self.tags or []),
            "averageRating": float(self.average_rating or 0.0),
            "saves": self.saves or 0,
            "prepTime": self.prep_time,
            "cookTime": self.cook_time,
            "servings": self.servings,
            "imageUri": self.image_uri,
        }
