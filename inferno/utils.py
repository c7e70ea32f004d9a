"""JSON helpers for spec data."""

from __future__ import annotations

import json
from typing import Any, TypeVar

from inferno.config import from_dict, to_dict

T = TypeVar("T")


def from_data_to_spec(data: bytes | str, cls: type[T]) -> T:
    """Decode JSON text into an instance of the spec class *cls*.

    Raises ValueError on malformed JSON or mismatched field types.
    """
    return from_dict(cls, json.loads(data))


def spec_to_json(spec: Any) -> str:
    """Encode a spec instance as compact JSON."""
    return json.dumps(to_dict(spec), separators=(",", ":"))