"""Text helpers."""


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def tail(text: str, chars: int) -> str:
    """Return the last ``chars`` characters of ``text``."""
    if chars <= 0:
        return ""
    return text[-chars:]
