"""
Fuzzy string scorer.

Jaro-Winkler similarity between a query and individual catalog fields.
Both inputs are lower-cased and stripped before comparison. A document's
fuzzy score is the best match over its fields, so a strong hit on the
brand alone counts as fully as a strong hit on the title.
"""

from __future__ import annotations

# =============================================================================
# Constants
# =============================================================================

_DEFAULT_BOOST_THRESHOLD = 0.7
_DEFAULT_PREFIX_SIZE = 4
_PREFIX_SCALE = 0.1


def jaro(a: str, b: str) -> float:
    """Jaro similarity of two strings, in [0, 1].

    Returns 0.0 if either string is empty.
    """
    len_a = len(a)
    len_b = len(b)
    if len_a == 0 or len_b == 0:
        return 0.0
    if a == b:
        return 1.0

    match_range = max(0, max(len_a, len_b) // 2 - 1)
    a_matched = [False] * len_a
    b_matched = [False] * len_b

    matches = 0
    for i, ch in enumerate(a):
        start = max(0, i - match_range)
        end = min(len_b, i + match_range + 1)
        for j in range(start, end):
            if not b_matched[j] and b[j] == ch:
                a_matched[i] = True
                b_matched[j] = True
                matches += 1
                break

    if matches == 0:
        return 0.0

    # Count matched characters that appear out of order
    out_of_order = 0
    k = 0
    for i in range(len_a):
        if not a_matched[i]:
            continue
        while not b_matched[k]:
            k += 1
        if a[i] != b[k]:
            out_of_order += 1
        k += 1
    transpositions = out_of_order / 2

    m = float(matches)
    return (m / len_a + m / len_b + (m - transpositions) / m) / 3.0


def jaro_winkler(
    a: str,
    b: str,
    boost_threshold: float = _DEFAULT_BOOST_THRESHOLD,
    prefix_size: int = _DEFAULT_PREFIX_SIZE,
) -> float:
    """Jaro-Winkler similarity of two strings, in [0, 1].

    The shared-prefix boost is only applied once the Jaro score exceeds
    ``boost_threshold``, and the prefix is capped at ``prefix_size``.

    Args:
        a: First string
        b: Second string
        boost_threshold: Minimum Jaro score before the prefix boost applies
        prefix_size: Maximum number of leading characters to reward

    Returns:
        Similarity score in [0, 1]
    """
    score = jaro(a, b)
    if score <= boost_threshold:
        return score

    limit = min(prefix_size, len(a), len(b))
    prefix = 0
    while prefix < limit and a[prefix] == b[prefix]:
        prefix += 1

    return score + _PREFIX_SCALE * prefix * (1.0 - score)


def similarity(a: str, b: str) -> float:
    """Case- and whitespace-insensitive Jaro-Winkler similarity.

    Identical non-empty strings score 1.0. Anything normalized to an
    empty string scores 0.0, including empty against empty.
    """
    a = (a or "").strip().lower()
    b = (b or "").strip().lower()
    if not a or not b:
        return 0.0
    return jaro_winkler(a, b)


def field_similarity(query: str, *fields: str) -> float:
    """Best similarity between ``query`` and any single field.

    Args:
        query: Search query
        *fields: Catalog fields (title, brand, description)

    Returns:
        Maximum per-field similarity, 0.0 when no fields are given
    """
    return max((similarity(query, field) for field in fields), default=0.0)
