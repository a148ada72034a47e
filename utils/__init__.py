"""Shared utilities for the backend."""
from utils.case import dict_keys_to_camel, field_path, to_camel_key, to_snake_key

__all__ = [
    "to_camel_key",
    "to_snake_key",
    "dict_keys_to_camel",
    "field_path",
]
