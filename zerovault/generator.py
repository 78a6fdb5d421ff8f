"""Random password generator with a coarse strength estimate."""
import secrets

from .vault.exceptions import InvalidInput

UPPERCASE = "ABCDEFGHJKLMNPQRSTUVWXYZ"  # no I, O
LOWERCASE = "abcdefghijkmnpqrstuvwxyz"  # no l, o
NUMBERS = "23456789"  # no 0, 1
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
SIMILAR = "Il1O0"

MIN_LENGTH = 6
MAX_LENGTH = 32


def generate_password(
    length: int = 16,
    uppercase: bool = True,
    lowercase: bool = True,
    numbers: bool = True,
    symbols: bool = True,
    exclude_similar: bool = True,
) -> str:
    """Generate a password from the selected character classes.

    Raises:
        InvalidInput: If length is out of range or no class is selected.
    """
    if not MIN_LENGTH <= length <= MAX_LENGTH:
        raise InvalidInput(f"Password length must be between {MIN_LENGTH} and {MAX_LENGTH}")
    alphabet = ""
    if uppercase:
        alphabet += UPPERCASE
    if lowercase:
        alphabet += LOWERCASE
    if numbers:
        alphabet += NUMBERS
    if symbols:
        alphabet += SYMBOLS
    if exclude_similar:
        alphabet = "".join(c for c in alphabet if c not in SIMILAR)
    if not alphabet:
        raise InvalidInput("Please select at least one character type")
    return "".join(secrets.choice(alphabet) for _ in range(length))


def password_strength(
    length: int,
    uppercase: bool = True,
    lowercase: bool = True,
    numbers: bool = True,
    symbols: bool = True,
) -> str:
    """Score generator settings: 'weak', 'medium', 'strong' or 'very-strong'."""
    score = sum(1 for threshold in (8, 12, 16) if length >= threshold)
    score += sum((uppercase, lowercase, numbers, symbols)) - 1
    if score >= 5:
        return "very-strong"
    if score >= 4:
        return "strong"
    if score >= 3:
        return "medium"
    return "weak"
