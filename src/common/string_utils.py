"""String manipulation utilities."""


def truncate_for_logging(
    text: str, max_length: int = 1000, edge_length: int = 500
) -> str:
    """
    Truncate text for logging, showing beginning and end.

    Engine output and user input can be arbitrarily long; only the edges
    are useful in a log line.

    Args:
        text: Text to truncate
        max_length: Maximum length before truncation is applied
        edge_length: Number of characters to show from start and end

    Returns:
        Truncated text with ellipsis if needed, or original text if short enough

    Examples:
        >>> truncate_for_logging("Hello", max_length=100)
        'Hello'
        >>> "..." in truncate_for_logging("x" * 2000, max_length=1000, edge_length=10)
        True
    """
    if len(text) <= max_length:
        return text
    return f"{text[:edge_length]}...\n...{text[-edge_length:]}"


def preview(text: str, limit: int = 40) -> str:
    """
    Single-line preview of text for log messages.

    Newlines are collapsed to spaces and the result is cut at limit
    characters with a trailing ellipsis.

    Examples:
        >>> preview("Hello\\nWorld")
        'Hello World'
        >>> preview("abcdef", limit=3)
        'abc…'
    """
    flattened = " ".join(text.split())
    if len(flattened) <= limit:
        return flattened
    return f"{flattened[:limit]}…"
