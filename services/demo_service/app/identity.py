"""
Demo identity derivation and credential generation.
"""
import re
import secrets
import string

from .errors import InvalidInputError

UPPER = string.ascii_uppercase
LOWER = string.ascii_lowercase
DIGITS = string.digits
SYMBOLS = "!@#$%^&*()"
PASSWORD_ALPHABET = UPPER + LOWER + DIGITS + SYMBOLS

DEFAULT_PASSWORD_LENGTH = 14

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_random = secrets.SystemRandom()


def derive_demo_email(requester_email: str, domain: str) -> str:
    """
    Map a requester's email to their demo account address.

    The local part is lower-cased and stripped of everything outside [a-z0-9],
    then joined with the demo domain: `jane.doe@example.com` -> `janedoe@<domain>`.
    """
    if not requester_email or "@" not in requester_email:
        raise InvalidInputError("Could not identify the requesting user.")

    local_part = requester_email.split("@")[0].lower()
    prefix = _NON_ALNUM.sub("", local_part)
    if not prefix:
        raise InvalidInputError(
            f"Cannot derive a demo account from '{requester_email}': no usable characters."
        )
    return f"{prefix}@{domain}"


def generate_random_password(length: int = DEFAULT_PASSWORD_LENGTH) -> str:
    """
    Random password with at least one upper, lower, digit and symbol character.
    """
    if length < 4:
        raise ValueError("Password length must be at least 4")

    chars = [
        secrets.choice(UPPER),
        secrets.choice(LOWER),
        secrets.choice(DIGITS),
        secrets.choice(SYMBOLS),
    ]
    chars.extend(secrets.choice(PASSWORD_ALPHABET) for _ in range(length - 4))
    # SystemRandom.shuffle is a Fisher-Yates permutation
    _random.shuffle(chars)
    return "".join(chars)
