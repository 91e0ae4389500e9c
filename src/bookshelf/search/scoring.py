"""
Field-Weighted Relevance Scoring

Ranks a review against a query by looking at each of its text fields.

For every (field, term) pair:

    exact phrase   field contains the whole query     + weight * 2
    word match     term matches on word boundaries    + weight * 1.5
    substring      term occurs, no boundary           + weight * 1
    prefix         field starts with the term         + weight * 0.5

The phrase bonus is checked inside the term loop, so a query of N terms
earns it N times. Scores are not normalized; only compare scores computed
for the same query.
"""

import re
from typing import Mapping

from bookshelf.search.tokenizer import tokenize

DEFAULT_FIELD_WEIGHTS: dict[str, float] = {
    "title": 10,
    "author": 8,
    "excerpt": 5,
    "genre": 5,
    "content": 2,
}

PHRASE_BONUS = 2.0
WORD_BOUNDARY_BONUS = 1.5
SUBSTRING_BONUS = 1.0
PREFIX_BONUS = 0.5


def effective_weights(weights: Mapping[str, float] | None = None) -> dict[str, float]:
    """Merge caller weights over the defaults (caller wins)."""
    merged = dict(DEFAULT_FIELD_WEIGHTS)
    if weights:
        merged.update(weights)
    return merged


def _is_word_match(term: str, value: str) -> bool:
    return re.search(rf"\b{re.escape(term)}\b", value, re.IGNORECASE) is not None


def calculate_relevance_score(
    fields: Mapping[str, str | None],
    query: str,
    weights: Mapping[str, float] | None = None,
) -> float:
    """
    Calculate the relevance of one record's fields for a query.

    Args:
        fields: Field name -> text value. Empty or None values are skipped.
        query: Raw user query.
        weights: Optional partial weight table merged over the defaults.
            Fields missing from the table weigh 1.

    Returns:
        Accumulated score (0.0 for a blank query or no matches)
    """
    terms = tokenize(query)
    if not terms:
        return 0.0

    table = effective_weights(weights)
    phrase = query.lower()
    total = 0.0

    for name, value in fields.items():
        if not value:
            continue

        weight = table.get(name) or 1
        lower_value = value.lower()

        for term in terms:
            if phrase in lower_value:
                total += weight * PHRASE_BONUS

            if term not in lower_value:
                continue

            if _is_word_match(term, lower_value):
                total += weight * WORD_BOUNDARY_BONUS
            else:
                total += weight * SUBSTRING_BONUS

            if lower_value.startswith(term):
                total += weight * PREFIX_BONUS

    return total
