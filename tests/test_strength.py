import pytest

from passvault.strength import Strength, assess, label, score


def test_empty_scores_zero():
    assert score("") == 0


@pytest.mark.parametrize(
    "password, expected",
    [
        ("aaaaaaaa", 30),       # >=8, lower, not all digits
        ("aB3!aaaa", 70),
        ("aB3!xyz9Q#mN", 80),
        ("Aa1!Aa1!Aa1!Aa1!", 90),
        ("12345678", 30),       # >=8, digit, not all letters
        ("abc", 20),
        ("7", 20),              # digit, not all letters
        ("ABCDEFGHIJKLMNOP", 50),
        ("pass word", 50),      # >=8, lower, symbol (space), not letters, not digits
    ],
)
def test_point_rules(password, expected):
    assert score(password) == expected


def test_monotonic_example():
    assert score("aaaaaaaa") < score("aB3!aaaa") < score("aB3!xyz9Q#mN")


def test_score_is_bounded():
    for pw in ["x", "X" * 200, "Aa1!" * 50, "€" * 20]:
        assert 0 <= score(pw) <= 100


def test_non_ascii_letters_count_as_symbols():
    # only A-Z / a-z are letters for scoring purposes
    assert score("éééééééé") == 40


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, Strength.WEAK),
        (29, Strength.WEAK),
        (30, Strength.MODERATE),
        (59, Strength.MODERATE),
        (60, Strength.STRONG),
        (79, Strength.STRONG),
        (80, Strength.VERY_STRONG),
        (100, Strength.VERY_STRONG),
    ],
)
def test_labels(value, expected):
    assert label(value) is expected


def test_assess():
    assert assess("aB3!xyz9Q#mN") == (80, Strength.VERY_STRONG)
    assert Strength.VERY_STRONG.value == "Very Strong"


def test_length_counts_utf16_code_units():
    # each emoji is a surrogate pair, so four of them reach the 8-unit rule
    assert score("😀😀😀😀") == 40
    assert score("😀😀😀") == 30
