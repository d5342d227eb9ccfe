import pytest

from line_counter import count_words


@pytest.mark.parametrize("line, expected", [
    ("", 0),
    ("   ", 0),
    ("\t\n", 0),
    ("hi there", 2),
    ("  leading and trailing  ", 3),
    ("a\tb  c\n", 3),
    ("one", 1),
    ("non\u00a0breaking\u2003space", 3),
])
def test_count_words(line, expected):
    assert count_words(line) == expected
