"""
Error code catalog and "did you mean" helpers for typecomb diagnostics.
"""

from __future__ import annotations


# =============================================================================
# Error Codes Catalog
# =============================================================================


class ErrorCode:
    """
    Centralized catalog of error codes for typecomb diagnostics.

    Error codes are organized by category:
    - E01xx: Type resolution errors
    - E02xx: Host syntax errors
    - E03xx: Compiler state and configuration errors
    """

    # Type resolution errors: E01xx
    E0101 = "E0101"  # unresolved type
    E0102 = "E0102"  # unmarked recursion
    E0103 = "E0103"  # unsupported construct
    E0104 = "E0104"  # duplicate declaration

    # Host syntax errors: E02xx
    E0201 = "E0201"  # source does not parse

    # State and configuration errors: E03xx
    E0301 = "E0301"  # illegal registry transition
    E0302 = "E0302"  # invalid configuration


# =============================================================================
# String Similarity
# =============================================================================


def levenshtein_distance(s1: str, s2: str) -> int:
    """
    Calculate the Levenshtein (edit) distance between two strings.

    Args:
        s1: First string
        s2: Second string

    Returns:
        The edit distance as an integer
    """
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))

    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def suggest_similar(
    name: str,
    candidates: list[str],
    max_distance: int = 2,
    max_suggestions: int = 3,
) -> list[str]:
    """
    Find declared names close to an unresolved one.

    Args:
        name: The name to find suggestions for
        candidates: List of valid names to compare against
        max_distance: Maximum edit distance to consider (default 2)
        max_suggestions: Maximum number of suggestions to return

    Returns:
        List of similar names, sorted by similarity (closest first)
    """
    if not candidates:
        return []

    scored = []
    for candidate in candidates:
        if candidate == name:
            continue
        distance = levenshtein_distance(name.lower(), candidate.lower())
        if distance <= max_distance:
            scored.append((distance, candidate))

    scored.sort()
    return [candidate for _, candidate in scored[:max_suggestions]]
