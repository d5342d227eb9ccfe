def count_words(line: str) -> int:
    """Number of whitespace-separated tokens in one line ('' and '   ' -> 0)."""
    return len(line.split())
