"""Argument validation shared by the progress services."""

import uuid
from typing import Any, List, Optional

from services.errors import InvalidArgumentError


def require_id(value: Any, field: str) -> str:
    """Return ``value`` as a canonical UUID string or raise ``InvalidArgumentError``."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidArgumentError(f"{field} is required", {"field": field})
    if not isinstance(value, str):
        raise InvalidArgumentError(f"Invalid {field}", {"field": field})
    try:
        return str(uuid.UUID(value.strip()))
    except ValueError:
        raise InvalidArgumentError(f"Invalid {field}", {"field": field}) from None


def require_list(value: Any, field: str, default: Optional[list] = None) -> list:
    """Return ``value`` if it is a list; ``None`` becomes ``default`` when given."""
    if value is None and default is not None:
        return list(default)
    if not isinstance(value, list):
        raise InvalidArgumentError(f"{field} must be an array", {"field": field})
    return value


def require_number(
    value: Any, field: str, minimum: float = 0, strictly_positive: bool = False
) -> float:
    """Return ``value`` as a number no smaller than ``minimum``."""
    if value is None:
        raise InvalidArgumentError(f"{field} is required", {"field": field})
    # bool is an int subclass; "true" is not a duration.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentError(f"{field} must be a number", {"field": field})
    if value != value or value in (float("inf"), float("-inf")):
        raise InvalidArgumentError(f"{field} must be finite", {"field": field})
    if strictly_positive and value <= 0:
        raise InvalidArgumentError(f"{field} must be greater than 0", {"field": field})
    if value < minimum:
        raise InvalidArgumentError(
            f"{field} must be at least {minimum}", {"field": field}
        )
    return value


def require_count(value: Any, field: str, default: int = 0) -> int:
    """Return a non-negative integer count; ``None`` becomes ``default``."""
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidArgumentError(
            f"{field} must be a non-negative integer", {"field": field}
        )
    return value


def require_index_list(value: Any, field: str) -> List[int]:
    """Return the de-duplicated, sorted non-negative integers in ``value``."""
    items = require_list(value, field, default=[])
    indexes = set()
    for item in items:
        if isinstance(item, bool) or not isinstance(item, int) or item < 0:
            raise InvalidArgumentError(
                f"{field} must contain non-negative integers", {"field": field}
            )
        indexes.add(item)
    return sorted(indexes)


def require_id_list(value: Any, field: str) -> List[str]:
    """Return the de-duplicated canonical ids in ``value``, first occurrence order."""
    items = require_list(value, field, default=[])
    return list(dict.fromkeys(require_id(item, field) for item in items))

