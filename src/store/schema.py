from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError

from .errors import SchemaInvalidError
from .models import Store


def _field_of(err: dict) -> str:
    loc = err.get("loc") or ()
    return ".".join(str(p) for p in loc) or "record"


def validate_store(candidate: Any, *, store_id: Optional[str] = None) -> Store:
    """Validate a candidate record before it is persisted.

    The same rules apply to create and update: a mapping with exactly one
    field, `value`, holding a non-empty string.

    Raises `SchemaInvalidError` naming the first violated field and the reason.
    """
    if isinstance(candidate, Store):
        candidate = candidate.model_dump()
    try:
        return Store.model_validate(candidate)
    except ValidationError as ve:
        first = ve.errors()[0]
        raise SchemaInvalidError(_field_of(first), first.get("msg", "invalid"), store_id=store_id) from ve


__all__ = ["validate_store"]
