"""
Update operator pipeline for JSONDB Engine.

Turns an existing document and an update spec into a candidate document.
The candidate is only committed by the collection after it passes schema
validation, so nothing here mutates the stored document.

Supported directives:

- ``$inc`` / ``$dec``: ``{"field": delta}`` adds / subtracts ``delta``
- ``$push``: ``{"field": value}`` appends ``value`` to an array field
- ``$pop``: ``{"field": "first" | "last"}`` removes one element from an end

Directives are applied in a fixed order: numeric operators, then array
operators, then literal assignments. Directives on the same field compose in
that order ($inc then $dec, $push then $pop). A directive that targets a
field which is absent, or of the wrong type, in the old document is skipped
without error.
"""

import copy
from collections.abc import Mapping
from typing import Any

from ..constants import (ARRAY_OPERATORS, NUMERIC_OPERATORS, OPERATOR_MARKER,
                         UPDATE_OPERATORS)
from ..exceptions import InvalidDataType
from ..observability.logging import get_logger
from ..utils.documents import require_mapping, to_json_value
from .types import ArrayOperator, Document, NumericOperator, PopEnd

logger = get_logger(__name__)


def is_operator(key: str) -> bool:
    """Return True if ``key`` names an update directive."""
    return key.startswith(OPERATOR_MARKER) and key in UPDATE_OPERATORS


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _directive_targets(update_spec: Mapping[str, Any], operator: str) -> Mapping[str, Any]:
    targets = update_spec[operator]
    if not isinstance(targets, Mapping):
        raise InvalidDataType(
            f"{operator} expects an object of field/value pairs, "
            f"got {type(targets).__name__}",
            context={"operator": operator},
        )
    return targets


def parse_pop_end(marker: Any) -> PopEnd:
    """
    Resolve a ``$pop`` marker to a PopEnd.

    Raises:
        InvalidDataType: If the marker is not "first" or "last"
    """
    try:
        return PopEnd(marker)
    except ValueError as e:
        raise InvalidDataType(
            f"$pop expects 'first' or 'last', got {marker!r}",
            context={"operator": "$pop"},
        ) from e


def apply_numeric(
    candidate: Document, operator: NumericOperator, targets: Mapping[str, Any]
) -> None:
    """Apply ``$inc`` or ``$dec`` to ``candidate`` in place."""
    for field, delta in targets.items():
        if not _is_number(delta):
            raise InvalidDataType(
                f"{operator} delta for '{field}' must be a number, got {type(delta).__name__}",
                context={"operator": operator, "field": field},
            )
        previous = candidate.get(field)
        if not _is_number(previous):
            logger.debug(f"Skipping {operator} on '{field}': not a number in the document")
            continue
        candidate[field] = previous + delta if operator == "$inc" else previous - delta


def apply_array(
    candidate: Document, operator: ArrayOperator, targets: Mapping[str, Any]
) -> None:
    """Apply ``$push`` or ``$pop`` to ``candidate`` in place, copying each array."""
    for field, argument in targets.items():
        end = parse_pop_end(argument) if operator == "$pop" else None
        previous = candidate.get(field)
        if not isinstance(previous, list):
            logger.debug(f"Skipping {operator} on '{field}': not an array in the document")
            continue

        updated = list(previous)
        if operator == "$push":
            updated.append(to_json_value(argument))
        elif updated:
            updated.pop(0 if end is PopEnd.FIRST else -1)
        candidate[field] = updated


def apply_update(old_document: Mapping[str, Any], update_spec: Any) -> Document:
    """
    Compute the document that results from applying ``update_spec``.

    Args:
        old_document: The currently stored document (left untouched)
        update_spec: Literal field assignments and/or operator directives

    Returns:
        A new candidate document. Directive keys never appear in it.

    Raises:
        InvalidDataType: If ``update_spec`` (or a directive's value) is not a
            mapping, a delta is not a number, or a $pop marker is unknown

    Example:
        apply_update({"name": "Ann", "age": 30}, {"$inc": {"age": 1}})
        # {"name": "Ann", "age": 31}
    """
    require_mapping(update_spec, "Update data")

    candidate: Document = copy.deepcopy(dict(old_document))

    for operator in NUMERIC_OPERATORS:
        if operator in update_spec:
            apply_numeric(candidate, operator, _directive_targets(update_spec, operator))

    for operator in ARRAY_OPERATORS:
        if operator in update_spec:
            apply_array(candidate, operator, _directive_targets(update_spec, operator))

    literals = {key: value for key, value in update_spec.items() if not is_operator(key)}
    candidate.update(to_json_value(literals))
    return candidate
