"""Search relevance and result preview helpers."""

from bookshelf.search.tokenizer import tokenize
from bookshelf.search.scoring import (
    DEFAULT_FIELD_WEIGHTS,
    calculate_relevance_score,
    effective_weights,
)
from bookshelf.search.snippet import (
    DEFAULT_HIGHLIGHT_CLASS,
    extract_snippets,
    highlight_search_terms,
    highlighted_text_html,
)

__all__ = [
    "tokenize",
    "DEFAULT_FIELD_WEIGHTS",
    "calculate_relevance_score",
    "effective_weights",
    "DEFAULT_HIGHLIGHT_CLASS",
    "extract_snippets",
    "highlight_search_terms",
    "highlighted_text_html",
]
