"""Query tokenization shared by scoring and highlighting."""


def tokenize(query: str) -> list[str]:
    """
    Split a raw query into normalized search terms.

    Terms are lowercased and whitespace-delimited; empty terms are dropped.
    A blank query yields an empty list.
    """
    if not query or not query.strip():
        return []
    return [term for term in query.lower().split() if term]
