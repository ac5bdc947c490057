"""Embedding vector helpers."""

from __future__ import annotations

import json
from typing import Any, Sequence

import numpy as np


def coerce_embedding(value: Any) -> list[float] | None:
    """Turn a stored embedding (pgvector array, JSON text, list) into floats."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return None
        if isinstance(parsed, list):
            return [float(v) for v in parsed]
        return None
    if hasattr(value, "tolist"):
        try:
            return [float(v) for v in value.tolist()]
        except TypeError:
            return None
    if isinstance(value, (list, tuple)):
        return [float(v) for v in value]
    return None


def is_usable_embedding(vector: Sequence[float] | None, dimensions: int | None = None) -> bool:
    """True for a non-empty, finite, non-zero vector of the expected size."""
    if vector is None:
        return False
    array = np.asarray(vector, dtype="float64")
    if array.ndim != 1 or array.size == 0:
        return False
    if dimensions is not None and array.size != dimensions:
        return False
    if not np.all(np.isfinite(array)):
        return False
    return bool(np.linalg.norm(array) > 0)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1]; 0.0 when either vector has zero norm."""
    left = np.asarray(a, dtype="float64")
    right = np.asarray(b, dtype="float64")
    denom = np.linalg.norm(left) * np.linalg.norm(right)
    if denom == 0:
        return 0.0
    return float(np.dot(left, right) / denom)
