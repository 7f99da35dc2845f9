from typing import List, Optional


def split_delimited(value: Optional[str], delimiter: str) -> List[str]:
    """Split ``value`` on a single-character ``delimiter``.

    Returns the trimmed, non-empty segments in order. ``None``, empty and
    whitespace-only input yield an empty list, which callers treat as
    "not configured".

        >>> split_delimited("a;;b; c ;", ";")
        ['a', 'b', 'c']
    """
    if len(delimiter) != 1:
        raise ValueError(f"Delimiter must be a single character, got {delimiter!r}")
    if not value or value.isspace():
        return []

    # Presize from the delimiter count, then slice in one scan
    tokens: List[Optional[str]] = [None] * (value.count(delimiter) + 1)
    count = 0
    start = 0
    while start <= len(value):
        end = value.find(delimiter, start)
        if end == -1:
            end = len(value)
        if end > start:
            token = value[start:end].strip()
            if token:
                tokens[count] = token
                count += 1
        start = end + 1

    return tokens[:count]
