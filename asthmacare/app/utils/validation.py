"""Form validation helpers shared by auth and appointments."""

import re

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_PASSWORD_LENGTH = 8


def is_valid_email(email: str) -> bool:
    """
    Check an email address has the shape ``local@domain.tld``.

    Args:
        email: Address to check

    Returns:
        True if the address looks valid
    """
    return bool(EMAIL_PATTERN.match(email or ""))


def password_requirements(password: str) -> dict[str, bool]:
    """
    Evaluate each password rule separately.

    Returns:
        Mapping of rule name (length, number, lowercase, uppercase) to whether it is met
    """
    return {
        "length": len(password) >= MIN_PASSWORD_LENGTH,
        "number": bool(re.search(r"\d", password)),
        "lowercase": bool(re.search(r"[a-z]", password)),
        "uppercase": bool(re.search(r"[A-Z]", password)),
    }


def is_strong_password(password: str) -> bool:
    return all(password_requirements(password).values())
