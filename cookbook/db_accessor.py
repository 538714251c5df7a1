from typing import Any, Dict, List, Mapping, Optional, Sequence, Type

from django.core.exceptions import ObjectDoesNotExist
from django.db import DatabaseError
from django.db.models import Model, Q, QuerySet

from cookbook.exceptions import NotFoundError, QueryExecutionError


class DB_Accessor:
    """Generic data accessor to wrap basic queryset operations."""

    def __init__(self, model: Type[Model]) -> None:
        self.model = model

    def list(
        self,
        *,
        filters: Optional[Q] = None,
        order_by: Sequence[str] = (),
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Model]:
        """Evaluate a filtered, ordered, sliced queryset."""
        qs: QuerySet = self.model.objects.all()
        if filters is not None:
            qs = qs.filter(filters)
        qs = self._apply_ordering(qs, order_by)
        qs = self._apply_slice(qs, offset=offset, limit=limit)
        return self.evaluate(qs)

    def evaluate(self, qs: QuerySet) -> List[Model]:
        """Run a queryset, converting store failures to QueryExecutionError."""
        try:
            return list(qs)
        except DatabaseError as e:
            raise QueryExecutionError(str(e)) from e

    def _apply_ordering(self, qs: QuerySet, order_by: Sequence[str]) -> QuerySet:
        return qs.order_by(*order_by) if order_by else qs

    def _apply_slice(
        self, qs: QuerySet, *, offset: int = 0, limit: Optional[int] = None
    ) -> QuerySet:
        if not (offset or limit is not None):
            return qs
        start = max(0, int(offset))
        end = None if limit is None else start + max(0, int(limit))
        return qs[start:end]

    def get(self, **lookup: Any) -> Model:
        """Fetch a single object matching the lookup or raise NotFoundError."""
        try:
            return self.model.objects.get(**lookup)
        except ObjectDoesNotExist:
            raise NotFoundError(f"{self.model.__name__} {lookup} not found")
        except DatabaseError as e:
            raise QueryExecutionError(str(e)) from e

    def create(self, **data: Any) -> Model:
        """Create and return a new object."""
        try:
            return self.model.objects.create(**data)
        except DatabaseError as e:
            raise QueryExecutionError(str(e)) from e

    def update(self, lookup: Mapping[str, Any], **data: Any) -> int:
        """Update objects matching lookup; return count updated."""
        try:
            return self.model.objects.filter(**lookup).update(**data)
        except DatabaseError as e:
            raise QueryExecutionError(str(e)) from e

    def delete(self, **lookup: Any) -> int:
        """Delete objects matching lookup; return count deleted."""
        try:
            count, _ = self.model.objects.filter(**lookup).delete()
        except DatabaseError as e:
            raise QueryExecutionError(str(e)) from e
        return count

    def as_dicts(self, objects: Sequence[Model]) -> List[Dict[str, Any]]:
        """Return documents for model instances that expose to_document()."""
        return [obj.to_document() for obj in objects]
