# identity_api/utils/otp.py
import secrets
import string

_system_random = secrets.SystemRandom()


# -------------------- OTP GENERATOR --------------------
def generate_otp(length: int = 6, rng=None) -> str:
    """
    Generate a numeric OTP of given length (default 6 digits).

    Every digit is drawn independently, so leading zeros are possible.
    `rng` is anything with a `choice` method; it defaults to the OS CSPRNG
    and can be a seeded `random.Random` in tests.
    """
    if length < 1:
        raise ValueError("The number of digits must be at least 1")

    rng = rng or _system_random
    return ''.join(rng.choice(string.digits) for _ in range(length))


# -------------------- MASKING --------------------
def mask(value: str, character: str = "*", index: int = 2, length: int = 5) -> str:
    """
    Hide `length` characters of `value` starting at `index`.

    mask("9876543210") -> "98*****210"
    """
    if not value or index >= len(value):
        return value or ""

    end = min(index + length, len(value))
    return value[:index] + character * (end - index) + value[end:]
