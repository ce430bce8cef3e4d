import pytest

from services.client_code import get_client_code_error, normalize_client_code, validate_client_code


@pytest.mark.parametrize("code", [
    "18K001",      # 2 digits + letter + 3 digits
    "18k001",      # lower case is accepted
    "91383117",    # 8 digits
    "18KS008",     # 2 digits + 2 letters + 3 digits
    "18ksabc008",  # 5 letters, mixed case
])
def test_accepts_known_shapes(code):
    assert validate_client_code(code) is True


@pytest.mark.parametrize("code", [
    "1K001",       # one leading digit
    "18K01",       # two trailing digits
    "18K0011",     # four trailing digits
    "1838311",     # 7 digits
    "913831170",   # 9 digits
    "18KSABCD008",  # 6 letters
    "18-K001",
    " 18K001",
    "١٨K٠٠١",      # non-ASCII digits
    "",
])
def test_rejects_wrong_shapes(code):
    assert validate_client_code(code) is False


@pytest.mark.parametrize("value", [None, 18001, ["18K001"]])
def test_non_strings_are_rejected_without_raising(value):
    assert validate_client_code(value) is False


def test_error_messages():
    assert get_client_code_error("") == "Client code is required"
    assert get_client_code_error(None) == "Client code is required"
    assert "Accepted formats" in get_client_code_error("1K001")
    assert get_client_code_error("18KS008") is None


def test_normalize_strips_and_upper_cases():
    assert normalize_client_code(" 18ks008 ") == "18KS008"
    assert normalize_client_code(None) == ""
