"""Cloud Firestore store for recipes, reviews, saves and tags."""

import logging
from collections import Counter
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote

from firebase_admin import firestore
from google.api_core.exceptions import GoogleAPICallError, NotFound, RetryError
from google.cloud.firestore_v1.base_query import FieldFilter

from cookbook.exceptions import (
    AggregateUnavailableError,
    InvalidFilterError,
    NotFoundError,
    QueryExecutionError,
)
from cookbook.firebase_admin_client import get_firestore_client
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

# Collections
RECIPE_COLLECTION = "recipes"
REVIEW_SUBCOLLECTION = "reviews"
SAVE_COLLECTION = "saves"
TAG_COLLECTION = "tags"

# Fields
RATING_FIELD = "rating"
NAME_FIELD = "name"
TOTAL_RECIPES_FIELD = "totalRecipes"
RECIPE_ID_FIELD = "recipeId"
USER_ID_FIELD = "userId"

# array_contains_any accepts at most 30 values
MAX_ANY_VALUES = 30

DOCUMENT_FIELD_NAMES = {
    "title": "title",
    "instructions": "instructions",
    "ingredients": "ingredients",
    "author_id": AUTHOR_ID_FIELD,
    "tags": TAGS_FIELD,
    "prep_time": "prepTime",
    "cook_time": "cookTime",
    "servings": "servings",
    "image_uri": "imageUri",
    "average_rating": AVERAGE_RATING_FIELD,
    "saves": SAVES_FIELD,
}


@contextmanager
def _store_errors(context: str) -> Iterator[None]:
    """Translate Firestore client errors into cookbook errors."""
    try:
        yield
    except NotFound as e:
        raise NotFoundError(f"{context}: {e}") from e
    except (GoogleAPICallError, RetryError) as e:
        logger.error("Firestore %s failed: %s", context, e)
        raise QueryExecutionError(f"{context}: {e}") from e


def _document(snapshot) -> Dict[str, Any]:
    return {**(snapshot.to_dict() or {}), "id": snapshot.id}


def _tag_doc_id(name: str) -> str:
    # document ids may not contain "/"
    return quote(name, safe="")


class FirestoreRecipeRepo:
    """Repository for recipe documents kept in Cloud Firestore."""

    def __init__(self, client=None) -> None:
        self._client = client

    @property
    def db(self):
        if self._client is None:
            self._client = get_firestore_client()
        if self._client is None:
            raise QueryExecutionError("Firestore is not configured")
        return self._client

    def _recipe_ref(self, recipe_id: str):
        return self.db.collection(RECIPE_COLLECTION).document(recipe_id)

    def _review_ref(self, recipe_id: str, user_id: str):
        return (
            self._recipe_ref(recipe_id)
            .collection(REVIEW_SUBCOLLECTION)
            .document(composite_id(recipe_id, user_id))
        )

    def _save_ref(self, recipe_id: str, user_id: str):
        return self.db.collection(SAVE_COLLECTION).document(composite_id(recipe_id, user_id))

    def _to_document_fields(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        unknown = set(fields) - set(DOCUMENT_FIELD_NAMES)
        if unknown:
            raise InvalidFilterError(f"Unknown recipe fields: {sorted(unknown)}")
        return {DOCUMENT_FIELD_NAMES[name]: value for name, value in fields.items()}

    # --- recipes ---------------------------------------------------------
    def create_recipe(self, fields: Mapping[str, Any]) -> str:
        return self.create_recipe_with_tags(fields, ())

    def create_recipe_with_tags(self, fields: Mapping[str, Any], tags: Sequence[str]) -> str:
        """Write a recipe and increment its tag counters in one batch."""
        data = {AVERAGE_RATING_FIELD: 0.0, SAVES_FIELD: 0}
        data.update(self._to_document_fields(fields))
        with _store_errors("create recipe"):
            recipe_ref = self.db.collection(RECIPE_COLLECTION).document()
            batch = self.db.batch()
            batch.set(recipe_ref, {**data, "id": recipe_ref.id})
            for name in tags:
                batch.set(
                    self.db.collection(TAG_COLLECTION).document(_tag_doc_id(name)),
                    {NAME_FIELD: name, TOTAL_RECIPES_FIELD: firestore.Increment(1)},
                    merge=True,
                )
            batch.commit()
        return recipe_ref.id

    def get_recipe(self, recipe_id: str) -> Dict[str, Any]:
        with _store_errors("get recipe"):
            snapshot = self._recipe_ref(recipe_id).get()
        if not snapshot.exists:
            raise NotFoundError(f"Recipe {recipe_id} not found")
        return _document(snapshot)

    def update_recipe(self, recipe_id: str, fields: Mapping[str, Any]) -> None:
        with _store_errors("update recipe"):
            self._recipe_ref(recipe_id).update(self._to_document_fields(fields))

    def delete_recipe(self, recipe_id: str) -> None:
        recipe_ref = self._recipe_ref(recipe_id)
        with _store_errors("delete recipe"):
            if not recipe_ref.get().exists:
                raise NotFoundError(f"Recipe {recipe_id} not found")
            batch = self.db.batch()
            for review in recipe_ref.collection(REVIEW_SUBCOLLECTION).stream():
                batch.delete(review.reference)
            saves = self.db.collection(SAVE_COLLECTION).where(
                filter=FieldFilter(RECIPE_ID_FIELD, "==", recipe_id)
            )
            for save in saves.stream():
                batch.delete(save.reference)
            batch.delete(recipe_ref)
            batch.commit()

    def list_recipes(self) -> List[Dict[str, Any]]:
        with _store_errors("list recipes"):
            return [_document(s) for s in self.db.collection(RECIPE_COLLECTION).stream()]

    def recipe_ids(self) -> List[str]:
        with _store_errors("list recipe ids"):
            return [ref.id for ref in self.db.collection(RECIPE_COLLECTION).list_documents()]

    def watch_recipes(self, callback: Callable[[List[Dict[str, Any]]], None]):
        """Push title-ordered recipe lists to callback on every change; returns the watch."""
        def on_snapshot(snapshots, changes, read_time):
            callback([_document(s) for s in snapshots])

        query = self.db.collection(RECIPE_COLLECTION).order_by(TITLE_FIELD)
        return query.on_snapshot(on_snapshot)

    # --- composed queries -----------------------------------------------
    def execute(self, query: ComposedQuery) -> List[Dict[str, Any]]:
        """Run a composed query; title containment is evaluated client-side."""
        ref = self.db.collection(RECIPE_COLLECTION)
        local: List[Predicate] = []
        for predicate in query.predicates:
            if predicate.op == OP_CONTAINS:
                local.append(predicate)
                continue
            ref = ref.where(filter=self._field_filter(predicate))

        if query.sort is not None:
            direction = firestore.Query.DESCENDING if query.sort.descending else firestore.Query.ASCENDING
            ref = ref.order_by(query.sort.field, direction=direction)
        if query.limit is not None and not local:
            ref = ref.limit(query.limit)

        with _store_errors("execute recipe query"):
            documents = [_document(s) for s in ref.stream()]

        if local:
            documents = [d for d in documents if all(p.matches(d) for p in local)]
            if query.limit is not None:
                documents = documents[: query.limit]
        return documents

    def _field_filter(self, predicate: Predicate) -> FieldFilter:
        key = (predicate.field, predicate.op)
        if key == (AUTHOR_ID_FIELD, OP_EQ):
            return FieldFilter(AUTHOR_ID_FIELD, "==", predicate.value)
        if key == (AVERAGE_RATING_FIELD, OP_GTE):
            return FieldFilter(AVERAGE_RATING_FIELD, ">=", predicate.value)
        if key == (TAGS_FIELD, OP_ARRAY_CONTAINS_ANY):
            if len(predicate.value) > MAX_ANY_VALUES:
                raise QueryExecutionError(
                    f"Firestore accepts at most {MAX_ANY_VALUES} tags per query, got {len(predicate.value)}"
                )
            return FieldFilter(TAGS_FIELD, "array_contains_any", list(predicate.value))
        raise InvalidFilterError(f"Unsupported predicate {predicate.field} {predicate.op}")

    # --- locking ---------------------------------------------------------
    @contextmanager
    def atomic(self, recipe_id: str) -> Iterator[None]:
        """Check the recipe exists; Firestore offers no row lock across an aggregate read."""
        self.get_recipe(recipe_id)
        yield

    # --- reviews ---------------------------------------------------------
    def upsert_review(self, recipe_id: str, user_id: str, rating: int, text: str = "") -> Dict[str, Any]:
        review_ref = self._review_ref(recipe_id, user_id)
        data = {
            RECIPE_ID_FIELD: recipe_id,
            USER_ID_FIELD: user_id,
            RATING_FIELD: rating,
            "text": text or "",
        }
        with _store_errors("write review"):
            review_ref.set(data)
        return {**data, "id": review_ref.id}

    def get_review(self, recipe_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        with _store_errors("get review"):
            snapshot = self._review_ref(recipe_id, user_id).get()
        return _document(snapshot) if snapshot.exists else None

    def reviews_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        query = self.db.collection_group(REVIEW_SUBCOLLECTION).where(
            filter=FieldFilter(USER_ID_FIELD, "==", user_id)
        )
        with _store_errors("list reviews"):
            return [_document(s) for s in query.stream()]

    def average_rating(self, recipe_id: str) -> float:
        """Server-side average of the recipe's review ratings."""
        reviews = self._recipe_ref(recipe_id).collection(REVIEW_SUBCOLLECTION)
        with _store_errors("average rating"):
            results = reviews.avg(RATING_FIELD, alias="average").get()
        for result in results:
            for aggregate in result:
                if aggregate.alias == "average" and aggregate.value is not None:
                    return float(aggregate.value)
        raise AggregateUnavailableError(f"No ratings visible for recipe {recipe_id}")

    def set_average_rating(self, recipe_id: str, value: float) -> None:
        with _store_errors("write average rating"):
            self._recipe_ref(recipe_id).update({AVERAGE_RATING_FIELD: value})

    # --- saves -----------------------------------------------------------
    def toggle_save(self, recipe_id: str, user_id: str) -> Tuple[bool, int]:
        """Flip the save record and its counter inside one Firestore transaction."""
        data = {RECIPE_ID_FIELD: recipe_id, USER_ID_FIELD: user_id}
        toggle = firestore.transactional(self._toggle_in_transaction)
        with _store_errors("toggle save"):
            return toggle(
                self.db.transaction(),
                self._save_ref(recipe_id, user_id),
                self._recipe_ref(recipe_id),
                data,
            )

    def _toggle_in_transaction(self, transaction, save_ref, recipe_ref, data) -> Tuple[bool, int]:
        recipe_snapshot = recipe_ref.get(transaction=transaction)
        if not recipe_snapshot.exists:
            raise NotFoundError(f"Recipe {recipe_ref.id} not found")
        save_snapshot = save_ref.get(transaction=transaction)
        current = (recipe_snapshot.to_dict() or {}).get(SAVES_FIELD) or 0
        if save_snapshot.exists:
            transaction.delete(save_ref)
            saves = max(0, current - 1)
        else:
            transaction.set(save_ref, data)
            saves = current + 1
        transaction.update(recipe_ref, {SAVES_FIELD: saves})
        return not save_snapshot.exists, saves

    def is_saved(self, recipe_id: str, user_id: str) -> bool:
        with _store_errors("get save"):
            return self._save_ref(recipe_id, user_id).get().exists

    def saved_recipe_ids(self, user_id: str) -> List[str]:
        query = self.db.collection(SAVE_COLLECTION).where(filter=FieldFilter(USER_ID_FIELD, "==", user_id))
        with _store_errors("list saves"):
            return [(s.to_dict() or {}).get(RECIPE_ID_FIELD) for s in query.stream()]

    def count_saves(self, recipe_id: str) -> int:
        query = self.db.collection(SAVE_COLLECTION).where(
            filter=FieldFilter(RECIPE_ID_FIELD, "==", recipe_id)
        )
        with _store_errors("count saves"):
            results = query.count(alias="total").get()
        for result in results:
            for aggregate in result:
                if aggregate.alias == "total":
                    return int(aggregate.value or 0)
        return 0

    def set_saves(self, recipe_id: str, value: int) -> None:
        with _store_errors("write saves"):
            self._recipe_ref(recipe_id).update({SAVES_FIELD: value})

    # --- tags ------------------------------------------------------------
    def apply_tag_changes(self, recipe_id: str, added: Sequence[str], removed: Sequence[str]) -> None:
        """Move tag counters: +1 for added tags, -1 (floored at 0) for removed ones."""
        if not added and not removed:
            return
        apply = firestore.transactional(self._tag_changes_in_transaction)
        with _store_errors("update tag counters"):
            apply(self.db.transaction(), list(added), list(removed))

    def _tag_changes_in_transaction(self, transaction, added, removed) -> None:
        tags = self.db.collection(TAG_COLLECTION)
        current = {}
        for name in removed:
            snapshot = tags.document(_tag_doc_id(name)).get(transaction=transaction)
            data = snapshot.to_dict() if snapshot.exists else {}
            current[name] = (data or {}).get(TOTAL_RECIPES_FIELD) or 0
        for name in added:
            transaction.set(
                tags.document(_tag_doc_id(name)),
                {NAME_FIELD: name, TOTAL_RECIPES_FIELD: firestore.Increment(1)},
                merge=True,
            )
        for name in removed:
            transaction.set(
                tags.document(_tag_doc_id(name)),
                {NAME_FIELD: name, TOTAL_RECIPES_FIELD: max(0, current[name] - 1)},
                merge=True,
            )

    def popular_tags(self, limit: int, author_id: Optional[str] = None) -> List[Tuple[str, int]]:
        """Flatten recipe tag arrays, count per tag, rank by count then name."""
        query = self.db.collection(RECIPE_COLLECTION)
        if author_id:
            query = query.where(filter=FieldFilter(AUTHOR_ID_FIELD, "==", author_id))
        counts: Counter = Counter()
        with _store_errors("rank tags"):
            for snapshot in query.stream():
                counts.update(normalise_tags((snapshot.to_dict() or {}).get(TAGS_FIELD)))
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return ranked[:limit]

    def top_tags(self, limit: int) -> List[Tuple[str, int]]:
        """Rank tags by their stored reference counts."""
        query = (
            self.db.collection(TAG_COLLECTION)
            .where(filter=FieldFilter(TOTAL_RECIPES_FIELD, ">", 0))
            .order_by(TOTAL_RECIPES_FIELD, direction=firestore.Query.DESCENDING)
            .order_by(NAME_FIELD)
            .limit(limit)
        )
        ranked = []
        with _store_errors("top tags"):
            for snapshot in query.stream():
                data = snapshot.to_dict() or {}
                name = data.get(NAME_FIELD)
                if not name:
                    logger.warning("Skipping tag document %s with empty name", snapshot.id)
                    continue
                ranked.append((name, int(data.get(TOTAL_RECIPES_FIELD) or 0)))
        return ranked

    def recount_tags(self) -> Dict[str, Tuple[int, int]]:
        """Reset every tag counter to the number of recipes carrying it."""
        counts: Counter = Counter()
        corrections: Dict[str, Tuple[int, int]] = {}
        with _store_errors("recount tags"):
            for snapshot in self.db.collection(RECIPE_COLLECTION).stream():
                counts.update(normalise_tags((snapshot.to_dict() or {}).get(TAGS_FIELD)))
            stored = {}
            for snapshot in self.db.collection(TAG_COLLECTION).stream():
                data = snapshot.to_dict() or {}
                if data.get(NAME_FIELD):
                    stored[data[NAME_FIELD]] = int(data.get(TOTAL_RECIPES_FIELD) or 0)
            batch = self.db.batch()
            for name in set(stored) | set(counts):
                old, new = stored.get(name, 0), counts.get(name, 0)
                if old != new:
                    corrections[name] = (old, new)
                    batch.set(
                        self.db.collection(TAG_COLLECTION).document(_tag_doc_id(name)),
                        {NAME_FIELD: name, TOTAL_RECIPES_FIELD: new},
                        merge=True,
                    )
            if corrections:
                batch.commit()
        return corrections
