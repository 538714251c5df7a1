"""Popular-tag ranking and tag set bookkeeping."""

from typing import List, Optional, Sequence, Tuple

from django.conf import settings

from cookbook.exceptions import InvalidFilterError
from cookbook.query import normalise_tags
from cookbook.repos import get_recipe_repo


def tag_changes(old_tags: Sequence[str], new_tags: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Return (added, removed) between two tag sequences."""
    old = normalise_tags(old_tags)
    new = normalise_tags(new_tags)
    added = [t for t in new if t not in old]
    removed = [t for t in old if t not in new]
    return added, removed


class TagService:
    """Rank tags by how many recipes carry them."""

    def __init__(self, *, repo=None) -> None:
        self.repo = get_recipe_repo() if repo is None else repo

    def popular_tags(self, limit: Optional[int] = None, author_id: Optional[str] = None) -> List[Tuple[str, int]]:
        """Top-N (tag, count) pairs from the flattened recipe tags, count desc then name."""
        return self.repo.popular_tags(self._limit(limit, settings.COOKBOOK_POPULAR_TAGS_LIMIT), author_id=author_id)

    def top_tags(self, limit: Optional[int] = None) -> List[Tuple[str, int]]:
        """Top-N (tag, count) pairs read from the reference-counted tag records."""
        return self.repo.top_tags(self._limit(limit, settings.COOKBOOK_POPULAR_TAGS_LIMIT))

    def home_tags(self) -> List[str]:
        """Names of the few most popular tags, for the home screen chips."""
        return [name for name, _ in self.popular_tags(limit=settings.COOKBOOK_HOME_TAGS_LIMIT)]

    def _limit(self, limit: Optional[int], default: int) -> int:
        if limit is None:
            return default
        if int(limit) <= 0:
            raise InvalidFilterError("limit must be positive")
        return int(limit)
