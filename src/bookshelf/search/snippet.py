"""
Snippet Generation and Highlighting for Search Results

Wraps query terms in <mark> tags and cuts KWIC (Key Word In Context)
windows around clusters of term occurrences.
"""

import re

from bookshelf.search.tokenizer import tokenize

DEFAULT_HIGHLIGHT_CLASS = "bg-yellow-200 font-semibold"
ELLIPSIS = "..."


def _term_pattern(terms: list[str]) -> re.Pattern:
    # Word boundary on the left edge only: "great" also marks "greatest".
    escaped_terms = [re.escape(t) for t in terms]
    return re.compile(r"\b(" + "|".join(escaped_terms) + r")", re.IGNORECASE)


def highlight_search_terms(
    text: str,
    query: str,
    highlight_class: str = DEFAULT_HIGHLIGHT_CLASS,
) -> str:
    """
    Wrap every query term occurrence in a <mark> tag.

    Matching is case-insensitive and the matched text keeps its original
    casing, so stripping the tags gives back the input unchanged.

    Args:
        text: Text to mark up (not HTML-escaped).
        query: Raw user query.
        highlight_class: CSS class applied to each <mark>.

    Returns:
        Marked-up text, or the text unchanged when there is nothing to mark
    """
    if not text or not query.strip():
        return text

    terms = tokenize(query)
    if not terms:
        return text

    pattern = _term_pattern(terms)

    def replace_fn(match):
        return f'<mark class="{highlight_class}">{match.group(1)}</mark>'

    return pattern.sub(replace_fn, text)


def highlighted_text_html(text: str, query: str, class_name: str = "") -> str:
    """Convenience wrapper returning the highlighted text inside a <span>."""
    return f'<span class="{class_name}">{highlight_search_terms(text, query)}</span>'


def _truncate(text: str, snippet_length: int) -> str:
    if len(text) > snippet_length:
        return text[:snippet_length] + ELLIPSIS
    return text


def _find_positions(text: str, terms: list[str]) -> list[int]:
    """Start offsets of every term occurrence, sorted and deduplicated."""
    lower_text = text.lower()
    positions = set()
    for term in terms:
        index = lower_text.find(term)
        while index != -1:
            positions.add(index)
            index = lower_text.find(term, index + len(term))
    return sorted(positions)


def _group_positions(positions: list[int], max_gap: float) -> list[list[int]]:
    groups: list[list[int]] = []
    for pos in positions:
        if groups and pos - groups[-1][-1] <= max_gap:
            groups[-1].append(pos)
        else:
            groups.append([pos])
    return groups


def extract_snippets(
    text: str,
    query: str,
    snippet_length: int = 150,
    max_snippets: int = 2,
) -> list[str]:
    """
    Extract context windows around clusters of query term occurrences.

    Occurrences closer than half a snippet apart share one window. Windows
    start a quarter snippet before the first occurrence of their cluster
    and run half a snippet past the last one, capped at snippet_length.
    Clusters are taken in text order.

    Args:
        text: Source text.
        query: Raw user query.
        snippet_length: Approximate window size in characters.
        max_snippets: Maximum number of windows returned.

    Returns:
        Snippets with "..." on truncated edges. When nothing matches, a
        single snippet holding the start of the text.
    """
    if not text or not query.strip():
        return [_truncate(text, snippet_length)]

    terms = tokenize(query)
    if not terms:
        return [_truncate(text, snippet_length)]

    positions = _find_positions(text, terms)
    if not positions:
        return [_truncate(text, snippet_length)]

    groups = _group_positions(positions, snippet_length / 2)

    snippets = []
    for group in groups[:max_snippets]:
        start = max(0, group[0] - snippet_length / 4)
        end = min(len(text), group[-1] + snippet_length / 2, start + snippet_length)

        snippet = text[int(start) : int(end)]
        if start > 0:
            snippet = ELLIPSIS + snippet
        if end < len(text):
            snippet = snippet + ELLIPSIS
        snippets.append(snippet)

    return snippets or [_truncate(text, snippet_length)]
