"""
Filter matching for JSONDB Engine.

A filter is a flat mapping of field -> expected value. A document matches
when it has every filter key and each value is equal by value. Matching
never treats an empty filter as "everything": callers who want bulk
semantics say so explicitly (``update_all`` / ``delete_all``).
"""

from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from ..exceptions import BadRequest
from ..utils.documents import require_mapping
from .types import DocumentRecord

R = TypeVar("R", bound=DocumentRecord)


def check_filter(filter: Any) -> Mapping[str, Any]:
    """
    Validate a filter before matching.

    Raises:
        InvalidDataType: If the filter is not a mapping
        BadRequest: If the filter has no keys
    """
    require_mapping(filter, "Filter")
    if len(filter) < 1:
        raise BadRequest(
            "Filter object does not contain any key/values",
            context={"hint": "pass update_all/delete_all for bulk operations"},
        )
    return filter


def values_equal(left: Any, right: Any) -> bool:
    """
    Compare two JSON values by value.

    Booleans only equal booleans, so ``True`` does not match ``1`` and
    ``False`` does not match ``0``. Containers compare element-wise with the
    same rule.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if left.keys() != right.keys():
            return False
        return all(values_equal(left[k], right[k]) for k in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(values_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, (Mapping, list, tuple)) or isinstance(right, (Mapping, list, tuple)):
        return False
    return left == right


def match(filter: Mapping[str, Any], document: Mapping[str, Any]) -> bool:
    """Return True if every filter key is present in ``document`` with an equal value."""
    check_filter(filter)
    for key, expected in filter.items():
        if key not in document:
            return False
        if not values_equal(document[key], expected):
            return False
    return True


def select(records: Iterable[R], filter: Mapping[str, Any]) -> list[R]:
    """
    Return every record whose document matches ``filter``, in collection order.

    Raises:
        InvalidDataType: If the filter is not a mapping
        BadRequest: If the filter has no keys
    """
    check_filter(filter)
    return [record for record in records if match(filter, record.document)]
