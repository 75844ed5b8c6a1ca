import pytest

from utils.validators import TextValidator, IDValidator


@pytest.mark.parametrize("text,expected", [
    ("Dune", True),
    ("  Dune  ", True),
    ("", False),
    ("   ", False),
    (None, False),
    ("Smith, John", False),
])
def test_validate_title_and_author(text, expected):
    assert TextValidator.validate_title(text) is expected
    assert TextValidator.validate_author(text) is expected

def test_validate_optional_allows_blank():
    assert TextValidator.validate_optional("") is True
    assert TextValidator.validate_optional(None) is True
    assert TextValidator.validate_optional("New Title") is True
    assert TextValidator.validate_optional("New, Title") is False

@pytest.mark.parametrize("raw,expected", [
    ("1", 1),
    (" 42 ", 42),
    ("0", None),
    ("-5", None),
    ("abc", None),
    ("", None),
    (None, None),
    ("3.5", None),
    ("++5", None),
    ("²", None),
    ("+7", 7),
])
def test_parse_positive_int(raw, expected):
    assert IDValidator.parse_positive_int(raw) == expected
