"""
Key conversion between the API (camelCase) and storage (snake_case).
Uses Pydantic's alias_generators so converted keys line up with schema aliases.
"""
from typing import Any, Iterable

from pydantic.alias_generators import to_camel, to_snake


def to_camel_key(s: str) -> str:
    return to_camel(s)


def to_snake_key(s: str) -> str:
    return to_snake(s)


def dict_keys_to_camel(obj: Any) -> Any:
    """Recursively convert dict keys to camelCase for API responses."""
    if isinstance(obj, dict):
        return {to_camel_key(k): dict_keys_to_camel(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [dict_keys_to_camel(x) for x in obj]
    return obj


def field_path(parts: Iterable[str]) -> str:
    """('investment_details', 'payment_method', 'cheque_number') -> 'investmentDetails.paymentMethod.chequeNumber'."""
    return ".".join(to_camel_key(p) for p in parts)
