"""Django ORM store for recipes, reviews, saves and tags."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from django.db import DatabaseError, transaction
from django.db.models import Avg, Count, F, Q
from django.utils import timezone

from cookbook.db_accessor import DB_Accessor
from cookbook.exceptions import (
    AggregateUnavailableError,
    InvalidFilterError,
    NotFoundError,
    QueryExecutionError,
)
from cookbook.models import Recipe, RecipeTag, Review, Save, Tag
from cookbook.query import (
    AUTHOR_ID_FIELD,
    AVERAGE_RATING_FIELD,
    OP_ARRAY_CONTAINS_ANY,
    OP_CONTAINS,
    OP_EQ,
    OP_GTE,
    SAVES_FIELD,
    TAGS_FIELD,
    TITLE_FIELD,
    ComposedQuery,
    Predicate,
    normalise_tags,
)
from cookbook.utils import composite_id

logger = logging.getLogger(__name__)

RECIPE_FIELDS = (
    "title",
    "instructions",
    "ingredients",
    "author_id",
    "tags",
    "prep_time",
    "cook_time",
    "servings",
    "image_uri",
    "average_rating",
    "saves",
)

# Primary sort plus deterministic tie-breakers.
ORDERINGS = {
    (TITLE_FIELD, False): ("title", "id"),
    (AVERAGE_RATING_FIELD, True): ("-average_rating", "title", "id"),
    (SAVES_FIELD, True): ("-saves", "title", "id"),
}
DEFAULT_ORDERING = ("created_at", "id")


class RecipeRepo(DB_Accessor):
    """Repository for recipe documents and their review/save/tag records."""

    def __init__(self) -> None:
        """Initialise with the Recipe model."""
        super().__init__(Recipe)

    # --- recipes ---------------------------------------------------------
    def create_recipe(self, fields: Mapping[str, Any]) -> str:
        """Insert a recipe and return its store-assigned id."""
        return self.create(**self._clean_fields(fields)).id

    def create_recipe_with_tags(self, fields: Mapping[str, Any], tags: Sequence[str]) -> str:
        """Insert a recipe and link its tags in one transaction."""
        try:
            with transaction.atomic():
                recipe_id = self.create_recipe(fields)
                self.apply_tag_changes(recipe_id, tags, [])
        except DatabaseError as e:
            raise QueryExecutionError(str(e)) from e
        return recipe_id

    def get_recipe(self, recipe_id: str) -> Dict[str, Any]:
        return self.get(pk=recipe_id).to_document()

    def update_recipe(self, recipe_id: str, fields: Mapping[str, Any]) -> None:
        """Write a partial set of fields onto a recipe."""
        updated = self.update({"pk": recipe_id}, updated_at=timezone.now(), **self._clean_fields(fields))
        if not updated:
            raise NotFoundError(f"Recipe {recipe_id} not found")

    def delete_recipe(self, recipe_id: str) -> None:
        """Delete a recipe; its reviews, saves and tag links go with it."""
        if not self.delete(pk=recipe_id):
            raise NotFoundError(f"Recipe {recipe_id} not found")

    def list_recipes(self) -> List[Dict[str, Any]]:
        return self.as_dicts(self.list(order_by=DEFAULT_ORDERING))

    def recipe_ids(self) -> List[str]:
        """Return all recipe IDs."""
        return list(self.model.objects.values_list("id", flat=True))

    def _clean_fields(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        unknown = set(fields) - set(RECIPE_FIELDS)
        if unknown:
            raise InvalidFilterError(f"Unknown recipe fields: {sorted(unknown)}")
        return dict(fields)

    # --- composed queries -----------------------------------------------
    def execute(self, query: ComposedQuery) -> List[Dict[str, Any]]:
        """Run a composed query and return id-merged recipe documents."""
        filters = Q()
        for predicate in query.predicates:
            filters &= self._predicate_q(predicate)
        order_by = DEFAULT_ORDERING
        if query.sort is not None:
            order_by = ORDERINGS[(query.sort.field, query.sort.descending)]
        recipes = self.list(filters=filters, order_by=order_by, limit=query.limit)
        return self.as_dicts(recipes)

    def _predicate_q(self, predicate: Predicate) -> Q:
        key = (predicate.field, predicate.op)
        if key == (TITLE_FIELD, OP_CONTAINS):
            return Q(title__icontains=predicate.value)
        if key == (AUTHOR_ID_FIELD, OP_EQ):
            return Q(author_id=predicate.value)
        if key == (AVERAGE_RATING_FIELD, OP_GTE):
            return Q(average_rating__gte=predicate.value)
        if key == (TAGS_FIELD, OP_ARRAY_CONTAINS_ANY):
            tagged = RecipeTag.objects.filter(tag_id__in=list(predicate.value)).values("recipe_id")
            return Q(id__in=tagged)
        raise InvalidFilterError(f"Unsupported predicate {predicate.field} {predicate.op}")

    # --- locking ---------------------------------------------------------
    @contextmanager
    def atomic(self, recipe_id: str) -> Iterator[None]:
        """Run a block in one transaction with the recipe row locked."""
        try:
            with transaction.atomic():
                locked = list(
                    Recipe.objects.select_for_update().filter(pk=recipe_id).values_list("pk", flat=True)
                )
                if not locked:
                    raise NotFoundError(f"Recipe {recipe_id} not found")
                yield
        except DatabaseError as e:
            raise QueryExecutionError(str(e)) from e

    # --- reviews ---------------------------------------------------------
    def upsert_review(self, recipe_id: str, user_id: str, rating: int, text: str = "") -> Dict[str, Any]:
        """Write or overwrite the (recipe, user) review."""
        try:
            review, _ = Review.objects.update_or_create(
                id=composite_id(recipe_id, user_id),
                defaults={
                    "recipe_id": recipe_id,
                    "user_id": user_id,
                    "rating": rating,
                    "text": text or "",
                },
            )
        except DatabaseError as e:
            raise QueryExecutionError(str(e)) from e
        return review.to_document()

    def get_review(self, recipe_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        review = Review.objects.filter(id=composite_id(recipe_id, user_id)).first()
        return review.to_document() if review else None

    def reviews_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        qs = Review.objects.filter(user_id=user_id).order_by("-updated_at", "id")
        return self.as_dicts(self.evaluate(qs))

    def average_rating(self, recipe_id: str) -> float:
        """Mean rating over the recipe's reviews."""
        try:
            # savepoint: a failed aggregate must not poison the caller's transaction
            with transaction.atomic():
                result = Review.objects.filter(recipe_id=recipe_id).aggregate(average=Avg("rating"))
        except DatabaseError as e:
            raise QueryExecutionError(str(e)) from e
        if result["average"] is None:
            raise AggregateUnavailableError(f"No ratings visible for recipe {recipe_id}")
        return float(result["average"])

    def set_average_rating(self, recipe_id: str, value: float) -> None:
        try:
            with transaction.atomic():
                self.model.objects.filter(pk=recipe_id).update(average_rating=value)
        except DatabaseError as e:
            raise QueryExecutionError(str(e)) from e

    # --- saves -----------------------------------------------------------
    def toggle_save(self, recipe_id: str, user_id: str) -> Tuple[bool, int]:
        """Flip the (recipe, user) save and move the counter by one, atomically."""
        key = composite_id(recipe_id, user_id)
        with self.atomic(recipe_id):
            deleted, _ = Save.objects.filter(id=key).delete()
            if deleted:
                Recipe.objects.filter(pk=recipe_id, saves__gt=0).update(saves=F("saves") - 1)
                saved = False
            else:
                Save.objects.create(id=key, recipe_id=recipe_id, user_id=user_id)
                Recipe.objects.filter(pk=recipe_id).update(saves=F("saves") + 1)
                saved = True
            saves = Recipe.objects.values_list("saves", flat=True).get(pk=recipe_id)
        return saved, saves

    def is_saved(self, recipe_id: str, user_id: str) -> bool:
        return Save.objects.filter(id=composite_id(recipe_id, user_id)).exists()

    def saved_recipe_ids(self, user_id: str) -> List[str]:
        return list(
            Save.objects.filter(user_id=user_id).order_by("-created_at").values_list("recipe_id", flat=True)
        )

    def count_saves(self, recipe_id: str) -> int:
        return Save.objects.filter(recipe_id=recipe_id).count()

    def set_saves(self, recipe_id: str, value: int) -> None:
        self.update({"pk": recipe_id}, saves=value)

    # --- tags ------------------------------------------------------------
    def apply_tag_changes(self, recipe_id: str, added: Sequence[str], removed: Sequence[str]) -> None:
        """Add/remove the recipe's tag links and move each tag counter by one."""
        try:
            with transaction.atomic():
                for name in added:
                    tag, _ = Tag.objects.get_or_create(name=name)
                    _, created = RecipeTag.objects.get_or_create(recipe_id=recipe_id, tag=tag)
                    if created:
                        Tag.objects.filter(pk=name).update(total_recipes=F("total_recipes") + 1)
                for name in removed:
                    deleted, _ = RecipeTag.objects.filter(recipe_id=recipe_id, tag_id=name).delete()
                    if deleted:
                        Tag.objects.filter(pk=name, total_recipes__gt=0).update(
                            total_recipes=F("total_recipes") - 1
                        )
        except DatabaseError as e:
            raise QueryExecutionError(str(e)) from e

    def popular_tags(self, limit: int, author_id: Optional[str] = None) -> List[Tuple[str, int]]:
        """Group the flattened (tag, recipe) pairs by tag and rank by count."""
        qs = RecipeTag.objects.all()
        if author_id:
            qs = qs.filter(recipe__author_id=author_id)
        rows = (
            qs.values("tag_id")
            .annotate(count=Count("id"))
            .order_by("-count", "tag_id")[:limit]
        )
        return [(row["tag_id"], row["count"]) for row in self.evaluate(rows)]

    def top_tags(self, limit: int) -> List[Tuple[str, int]]:
        """Rank tags by their stored reference counts."""
        qs = Tag.objects.filter(total_recipes__gt=0).order_by("-total_recipes", "name")[:limit]
        return [(tag.name, tag.total_recipes) for tag in self.evaluate(qs)]

    def recount_tags(self) -> Dict[str, Tuple[int, int]]:
        """Rebuild tag links from recipe tags and reset counters; return corrections."""
        corrections: Dict[str, Tuple[int, int]] = {}
        try:
            with transaction.atomic():
                for recipe in Recipe.objects.only("id", "tags"):
                    wanted = set(normalise_tags(recipe.tags))
                    have = set(recipe.tag_links.values_list("tag_id", flat=True))
                    for name in wanted - have:
                        tag, _ = Tag.objects.get_or_create(name=name)
                        RecipeTag.objects.create(recipe=recipe, tag=tag)
                    RecipeTag.objects.filter(recipe=recipe, tag_id__in=have - wanted).delete()
                counts = dict(
                    RecipeTag.objects.values("tag_id").annotate(n=Count("id")).values_list("tag_id", "n")
                )
                for tag in Tag.objects.all():
                    actual = counts.get(tag.name, 0)
                    if tag.total_recipes != actual:
                        corrections[tag.name] = (tag.total_recipes, actual)
                        tag.total_recipes = actual
                        tag.save(update_fields=["total_recipes"])
        except DatabaseError as e:
            raise QueryExecutionError(str(e)) from e
        return corrections
