"""
Key-case conversion between Python attribute names and the camelCase wire
format used by the browser and the upstream API.
"""

from __future__ import annotations

import re
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Literal

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def snake_to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def camel_to_snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"_\1", key).lower()


def convert_keys(
    obj: Any, direction: Literal["snake_to_camel", "camel_to_snake"]
) -> Any:
    """Recursively renames dict keys; lists are walked, other values kept."""
    convert = snake_to_camel if direction == "snake_to_camel" else camel_to_snake
    if isinstance(obj, dict):
        return {
            (convert(key) if isinstance(key, str) else key): convert_keys(value, direction)
            for key, value in obj.items()
        }
    if isinstance(obj, list):
        return [convert_keys(item, direction) for item in obj]
    if isinstance(obj, Enum):
        return obj.value
    return obj


def to_json_dict(obj: Any) -> Any:
    """Renders a DTO dataclass (or list of them) in the camelCase wire shape."""
    if isinstance(obj, list):
        return [to_json_dict(item) for item in obj]
    if is_dataclass(obj) and not isinstance(obj, type):
        return convert_keys(asdict(obj), "snake_to_camel")
    return convert_keys(obj, "snake_to_camel")
