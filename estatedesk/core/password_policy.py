import re
from typing import List, Tuple

from estatedesk.core.config import settings

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"\d")
_SYMBOL = re.compile(r"[^A-Za-z0-9]")

PASSWORD_MAX_LENGTH = 128


def validate_password(pw: str) -> Tuple[bool, List[str]]:
    errors: List[str] = []

    if not isinstance(pw, str):
        return False, ["Password must be a string"]

    min_len = settings.PASSWORD_MIN_LENGTH
    if len(pw) < min_len:
        errors.append(f"Password must be at least {min_len} characters")
    if len(pw) > PASSWORD_MAX_LENGTH:
        errors.append(f"Password must be at most {PASSWORD_MAX_LENGTH} characters")

    if not _UPPER.search(pw):
        errors.append("Password must include at least 1 uppercase letter")
    if not _LOWER.search(pw):
        errors.append("Password must include at least 1 lowercase letter")
    if not _DIGIT.search(pw):
        errors.append("Password must include at least 1 number")
    if not _SYMBOL.search(pw):
        errors.append("Password must include at least 1 symbol")

    return (len(errors) == 0), errors
