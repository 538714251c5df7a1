"""Identity helpers for cookbook documents."""

import uuid


def new_document_id() -> str:
    """Return an opaque store-assigned id (uuid7 when available, else uuid4)."""
    return getattr(uuid, "uuid7", uuid.uuid4)().hex


def composite_id(recipe_id, user_id) -> str:
    """Key for one-per-(recipe, user) records such as reviews and saves."""
    return f"{recipe_id}_{user_id}"
