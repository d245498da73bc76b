"""
Custom exceptions for JSONDB_ENGINE.

Every failure of a store operation is raised as a subclass of JSONDBError.
Each class carries a string ``error`` code and a numeric ``error_code`` so
callers can branch on the kind of failure, or serialize it with ``to_dict()``.
"""

from typing import Any, Dict, Optional, TypedDict

from .constants import (ERROR_CODE_BAD_REQUEST, ERROR_CODE_CONFIGURATION,
                        ERROR_CODE_CONNECTION, ERROR_CODE_INVALID_DATA_TYPE,
                        ERROR_CODE_INVALID_SCHEMA, ERROR_CODE_NO_CONNECTION,
                        ERROR_CODE_NOT_FOUND, ERROR_CODE_PERSISTENCE)


class ErrorDetailDict(TypedDict, total=False):
    """Serialized form of a JSONDBError (see ``JSONDBError.to_dict``)."""

    message: str
    error: str
    errorCode: int
    params: Dict[str, Any]


class JSONDBError(RuntimeError):
    """
    Base exception for JSONDB Engine errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (collection,
                 operation, etc.)
        error: Machine readable error kind
        error_code: Numeric error code
    """

    error: str = "JSONDB_ERROR"
    error_code: int = 600

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional dictionary with additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message

    def to_dict(self) -> ErrorDetailDict:
        """Render the error as a plain ``{message, error, errorCode}`` object."""
        return {
            "message": self.message,
            "error": self.error,
            "errorCode": self.error_code,
        }


class InvalidDataType(JSONDBError):
    """Raised when a document, filter or update spec is not a plain mapping."""

    error = "INVALID_DATA_TYPE"
    error_code = ERROR_CODE_INVALID_DATA_TYPE


class NotFound(JSONDBError):
    """Raised when an update or delete by handle targets no document."""

    error = "NOT_FOUND"
    error_code = ERROR_CODE_NOT_FOUND


class CollectionConnectionError(JSONDBError):
    """Raised when ``connect`` is called on an already connected collection."""

    error = "CONNECTION_ERROR"
    error_code = ERROR_CODE_CONNECTION


class BadRequest(JSONDBError):
    """Raised when a filter carries no keys."""

    error = "BAD_REQUEST"
    error_code = ERROR_CODE_BAD_REQUEST


class NoConnection(JSONDBError):
    """Raised when a data operation runs before ``connect``."""

    error = "NO_CONNECTION"
    error_code = ERROR_CODE_NO_CONNECTION


class InvalidSchema(JSONDBError):
    """
    Raised when a document does not conform to the connected schema.

    Attributes:
        keyword: JSON Schema keyword that failed (e.g. "required", "type")
        params: Detail about the failure (path, schema_path, validator_value)
    """

    error_code = ERROR_CODE_INVALID_SCHEMA

    def __init__(
        self,
        message: str,
        keyword: str,
        params: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the schema error.

        Args:
            message: Validation message of the offending error
            keyword: JSON Schema keyword that failed
            params: Additional parameter detail for the failure
            context: Additional context information
        """
        context = context or {}
        context["keyword"] = keyword
        super().__init__(message, context=context)
        self.keyword = keyword
        self.params = params or {}

    @property
    def error(self) -> str:  # type: ignore[override]
        return f"INVALID_SCHEMA_RES:{self.keyword.upper()}"

    def to_dict(self) -> ErrorDetailDict:
        data = super().to_dict()
        data["params"] = self.params
        return data


class PersistenceError(JSONDBError):
    """
    Raised when a backing file cannot be read, parsed or written.

    Attributes:
        path: Backing file path (if available)
    """

    error = "PERSISTENCE_ERROR"
    error_code = ERROR_CODE_PERSISTENCE

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if path:
            context["path"] = path
        super().__init__(message, context=context)
        self.path = path


class ConfigurationError(JSONDBError):
    """
    Raised when configuration, connect options or a schema definition is invalid.

    Attributes:
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
    """

    error = "CONFIGURATION_ERROR"
    error_code = ERROR_CODE_CONFIGURATION

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the configuration error.

        Args:
            message: Error message
            config_key: Configuration key that caused the error (if available)
            config_value: Configuration value that caused the error (if available)
            context: Additional context information
        """
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value
