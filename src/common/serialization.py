"""Serialization utilities."""

from dataclasses import asdict
from datetime import datetime


def serialize_dataclass(obj) -> dict:
    """Serialize a dataclass to dict, converting datetimes to ISO strings and tuples to lists."""
    data = asdict(obj)
    for key, value in data.items():
        if isinstance(value, datetime):
            data[key] = value.isoformat()
        elif isinstance(value, (tuple, frozenset, set)):
            data[key] = sorted(value) if isinstance(value, (frozenset, set)) else list(value)
    return data
