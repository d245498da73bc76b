"""
Schema gate for JSONDB Engine.

Wraps a compiled JSON Schema validator. Every document created in, or
produced by an update of, a collection must pass through ``SchemaGate.validate``
before it is committed.

The validator class is chosen from the schema's ``$schema`` keyword
(Draft 2020-12 when absent) and formats such as ``date-time`` are asserted
through jsonschema's ``FormatChecker``.
"""

from collections.abc import Mapping
from typing import Any

from jsonschema import FormatChecker, SchemaError
from jsonschema.exceptions import ValidationError
from jsonschema.validators import Draft202012Validator, validator_for

from ..exceptions import ConfigurationError, InvalidDataType, InvalidSchema
from ..observability.logging import get_logger
from .types import InvalidSchemaParamsDict

logger = get_logger(__name__)


def _error_params(error: ValidationError) -> InvalidSchemaParamsDict:
    return {
        "path": list(error.absolute_path),
        "schema_path": list(error.absolute_schema_path),
        "validator_value": error.validator_value,
    }


class SchemaGate:
    """
    Compiled schema bound to one collection.

    Example:
        gate = SchemaGate.compile({
            "type": "object",
            "required": ["name", "age"],
            "properties": {"name": {"type": "string"}, "age": {"type": "integer"}},
        })
        gate.validate({"name": "Ann", "age": 30})  # passes
        gate.validate({"name": "Ann"})             # raises InvalidSchema
    """

    def __init__(self, validator: Any, schema: Mapping[str, Any]):
        self._validator = validator
        self._schema = schema

    @classmethod
    def compile(cls, schema: Any) -> "SchemaGate":
        """
        Check ``schema`` and build a gate around it.

        Raises:
            InvalidDataType: If schema is not a mapping
            ConfigurationError: If schema is not a valid JSON Schema
        """
        if not isinstance(schema, Mapping):
            raise InvalidDataType(
                f"Schema must be an object, got {type(schema).__name__}",
                context={"expected": "object"},
            )

        validator_cls = validator_for(schema, default=Draft202012Validator)
        try:
            validator_cls.check_schema(schema)
        except SchemaError as e:
            raise ConfigurationError(
                f"Invalid schema definition: {e.message}",
                config_key="schema",
                context={"schema_path": ".".join(str(p) for p in e.absolute_path) or "root"},
            ) from e

        validator = validator_cls(schema, format_checker=FormatChecker())
        logger.debug(f"Compiled schema with {validator_cls.__name__}")
        return cls(validator, schema)

    @property
    def schema(self) -> Mapping[str, Any]:
        """The schema this gate was compiled from."""
        return self._schema

    def is_valid(self, document: Any) -> bool:
        """Return True if ``document`` conforms to the schema."""
        return self._validator.is_valid(document)

    def validate(self, document: Any) -> None:
        """
        Validate a document against the schema.

        Raises:
            InvalidSchema: Carrying the first failing keyword (in schema
                order), its message and parameter detail
        """
        error = next(iter(self._validator.iter_errors(document)), None)
        if error is None:
            return

        keyword = str(error.validator)
        path = ".".join(str(p) for p in error.absolute_path) or "root"
        logger.debug(f"Schema validation failed at {path}: {keyword}")
        raise InvalidSchema(
            error.message,
            keyword=keyword,
            params=_error_params(error),
            context={"path": path},
        )
