"""Utility functions for JSONDB Engine."""

from .documents import clean_document, require_mapping, to_json_value

__all__ = ["clean_document", "require_mapping", "to_json_value"]
