"""
Vector similarity for the semantic half of the hybrid score.

Cosine similarity is defined for any pair of inputs: degenerate vectors
(empty, mismatched length, zero magnitude) score 0.0 instead of raising,
so a provider that changes dimensionality degrades ranking rather than
failing requests.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

# =============================================================================
# Constants
# =============================================================================

_MIN_SCORE = 0.0
_MAX_SCORE = 1.0


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Compute cosine similarity between two vectors.

    Args:
        a: First vector
        b: Second vector

    Returns:
        dot(a, b) / (|a| * |b|) clamped to [0, 1]; 0.0 when either vector
        is empty, the lengths differ, or the magnitude product is zero
    """
    if not a or not b or len(a) != len(b):
        return _MIN_SCORE

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    denominator = math.sqrt(norm_a) * math.sqrt(norm_b)
    if denominator == 0 or not math.isfinite(denominator):
        return _MIN_SCORE

    # Opposite directions count as no semantic match
    return max(_MIN_SCORE, min(_MAX_SCORE, dot / denominator))
