# services/client_code.py
import re
from typing import Any, Optional

# 18K099: 2 digits + letter + 3 digits
_FORMAT_A = re.compile(r"\d{2}[A-Z]\d{3}")
# 91383117: 8 digits
_FORMAT_B = re.compile(r"\d{8}")
# 18KS008: 2 digits + 1-5 letters + 3 digits
_FORMAT_C = re.compile(r"\d{2}[A-Z]{1,5}\d{3}")

CLIENT_CODE_FORMAT_HINT = (
    "Accepted formats: 18K099 (2 digits + letter + 3 digits), "
    "91383117 (8 digits), 18KS008 (2 digits + 1-5 letters + 3 digits)"
)


def normalize_client_code(code: Any) -> str:
    if not isinstance(code, str):
        return ""
    return code.strip().upper()


def validate_client_code(code: Any) -> bool:
    """True when ``code`` (any letter case) has one of the accepted back-office shapes."""
    if not isinstance(code, str) or not code:
        return False
    candidate = code.upper()
    # re's \d also matches non-ASCII digits
    if not candidate.isascii():
        return False
    return any(pattern.fullmatch(candidate) for pattern in (_FORMAT_A, _FORMAT_B, _FORMAT_C))


def get_client_code_error(code: Any) -> Optional[str]:
    if not isinstance(code, str) or not code.strip():
        return "Client code is required"
    if not validate_client_code(code):
        return f"Invalid client code format. {CLIENT_CODE_FORMAT_HINT}"
    return None
