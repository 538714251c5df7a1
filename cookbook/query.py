"""
Recipe filter requests and the composed queries built from them.

A `RecipeFilter` is what a caller asks for; `compose_query` turns it into a
`ComposedQuery`: a conjunction of predicates, one sort directive and an
optional limit. A dimension the caller left empty (blank title, zero rating,
no tags, no author) produces no predicate at all. Store adapters translate a
`ComposedQuery` into their own query language; `ComposedQuery.matches` and
`ComposedQuery.apply` evaluate it in memory with the same semantics.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from cookbook.exceptions import InvalidFilterError

# Document field names shared by every store backend.
TITLE_FIELD = "title"
AVERAGE_RATING_FIELD = "averageRating"
AUTHOR_ID_FIELD = "authorId"
TAGS_FIELD = "tags"
SAVES_FIELD = "saves"

OP_CONTAINS = "contains"
OP_GTE = ">="
OP_EQ = "=="
OP_ARRAY_CONTAINS_ANY = "array_contains_any"


class SortBy(str, Enum):
    NONE = "none"
    RATING = "rating"
    TITLE = "title"
    SAVES = "saves"

    @classmethod
    def parse(cls, value) -> "SortBy":
        """Accept enum members, their values, and the long-form aliases."""
        if isinstance(value, cls):
            return value
        if value is None or value == "":
            return cls.NONE
        key = str(value).strip().lower()
        aliases = {
            "rating-desc": cls.RATING,
            "title-asc": cls.TITLE,
            "alphabetical": cls.TITLE,
            "saves-desc": cls.SAVES,
            "popularity": cls.SAVES,
        }
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise InvalidFilterError(f"Unknown sort key: {value!r}")


@dataclass(frozen=True)
class Predicate:
    field: str
    op: str
    value: Any

    def matches(self, document: Mapping[str, Any]) -> bool:
        actual = document.get(self.field)
        if self.op == OP_CONTAINS:
            return str(self.value).casefold() in str(actual or "").casefold()
        if self.op == OP_GTE:
            return actual is not None and float(actual) >= float(self.value)
        if self.op == OP_EQ:
            return actual == self.value
        if self.op == OP_ARRAY_CONTAINS_ANY:
            return bool(set(actual or []) & set(self.value))
        raise InvalidFilterError(f"Unsupported operator: {self.op}")


@dataclass(frozen=True)
class SortDirective:
    field: str
    descending: bool = False


SORT_DIRECTIVES = {
    SortBy.RATING: SortDirective(AVERAGE_RATING_FIELD, descending=True),
    SortBy.TITLE: SortDirective(TITLE_FIELD, descending=False),
    SortBy.SAVES: SortDirective(SAVES_FIELD, descending=True),
}


@dataclass(frozen=True)
class ComposedQuery:
    predicates: Tuple[Predicate, ...] = ()
    sort: Optional[SortDirective] = None
    limit: Optional[int] = None

    def predicate_for(self, field_name: str) -> Optional[Predicate]:
        for predicate in self.predicates:
            if predicate.field == field_name:
                return predicate
        return None

    def matches(self, document: Mapping[str, Any]) -> bool:
        """True when the document satisfies every predicate."""
        return all(p.matches(document) for p in self.predicates)

    def apply(self, documents: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
        """Filter, sort and limit documents in memory."""
        results = [doc for doc in documents if self.matches(doc)]
        if self.sort is not None:
            results = sort_documents(results, self.sort)
        if self.limit is not None:
            results = results[: self.limit]
        return results


def sort_documents(documents: List[Mapping[str, Any]], directive: SortDirective) -> List:
    """Stable sort on one document field; missing values sort last."""
    present = [d for d in documents if d.get(directive.field) is not None]
    missing = [d for d in documents if d.get(directive.field) is None]
    present.sort(key=lambda d: d[directive.field], reverse=directive.descending)
    return present + missing


def normalise_tags(tags) -> List[str]:
    """Return trimmed, de-duplicated tag labels from comma- or list-based input."""
    if not tags:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    result: List[str] = []
    seen = set()
    for tag in tags:
        label = str(tag).strip()
        if label and label not in seen:
            seen.add(label)
            result.append(label)
    return result


@dataclass
class RecipeFilter:
    """A caller's filter-and-sort request over the recipe collection."""
    title_contains: str = ""
    min_rating: float = 0
    tags: Sequence[str] = field(default_factory=list)
    author_id: Optional[str] = None
    sort_by: SortBy = SortBy.NONE
    limit: Optional[int] = None

    def __post_init__(self):
        self.title_contains = (self.title_contains or "").strip()
        self.tags = normalise_tags(self.tags)
        self.sort_by = SortBy.parse(self.sort_by)
        try:
            self.min_rating = float(self.min_rating or 0)
        except (TypeError, ValueError):
            raise InvalidFilterError(f"min_rating must be a number, got {self.min_rating!r}")
        if self.limit is not None:
            try:
                self.limit = int(self.limit)
            except (TypeError, ValueError):
                raise InvalidFilterError(f"limit must be an integer, got {self.limit!r}")
            if self.limit <= 0:
                raise InvalidFilterError("limit must be positive")


def compose_query(recipe_filter: RecipeFilter) -> ComposedQuery:
    """Build the conjunctive query for a filter, omitting absent dimensions."""
    predicates: List[Predicate] = []

    if recipe_filter.title_contains:
        predicates.append(Predicate(TITLE_FIELD, OP_CONTAINS, recipe_filter.title_contains))

    if recipe_filter.author_id:
        predicates.append(Predicate(AUTHOR_ID_FIELD, OP_EQ, recipe_filter.author_id))

    if recipe_filter.min_rating > 0:
        predicates.append(Predicate(AVERAGE_RATING_FIELD, OP_GTE, recipe_filter.min_rating))

    if recipe_filter.tags:
        predicates.append(Predicate(TAGS_FIELD, OP_ARRAY_CONTAINS_ANY, tuple(recipe_filter.tags)))

    return ComposedQuery(
        predicates=tuple(predicates),
        sort=SORT_DIRECTIVES.get(recipe_filter.sort_by),
        limit=recipe_filter.limit,
    )
