import pytest

from keyward.assign import InvalidArgumentError, require_valid_name, validate_name


@pytest.mark.parametrize(
    "name",
    ["group", "General_Password", "billing-worker", "db.password", "secret..15a3c8f2b0e", "A1"],
)
def test_accepts_letters_digits_underscore_hyphen_dot(name):
    assert validate_name(name)


@pytest.mark.parametrize(
    "name",
    ["Invalid Name", "", None, "tab\tname", "slash/name", "semi;colon", "café", "name\n"],
)
def test_rejects_whitespace_and_punctuation(name):
    assert not validate_name(name)


def test_require_valid_name_returns_name():
    assert require_valid_name("Web", "group") == "Web"


def test_require_valid_name_raises_invalid_argument():
    with pytest.raises(InvalidArgumentError) as e:
        require_valid_name("Invalid Name", "group")
    assert "group" in str(e.value)
    # InvalidArgumentError is also a ValueError
    assert isinstance(e.value, ValueError)
