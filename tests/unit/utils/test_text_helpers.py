"""Tests for text helpers."""

import pytest

from novelpilot.utils.text import count_words, tail


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", 0),
        ("   ", 0),
        ("one", 1),
        ("one  two\nthree\tfour", 4),
        ("  leading and trailing  ", 3),
    ],
)
def test_count_words(text: str, expected: int) -> None:
    assert count_words(text) == expected


def test_tail() -> None:
    assert tail("abcdef", 3) == "def"
    assert tail("abc", 10) == "abc"
    assert tail("abc", 0) == ""
