"""
RSCP Secure Random Generation

All randomness comes from the operating system CSPRNG via ``secrets``.
Nothing is cached between calls.
"""

import secrets

MAX_RANDOM_INT = 0xFFFFFFFF


def get_random_bytes(length: int) -> bytes:
    """Return ``length`` cryptographically secure random bytes."""
    if length < 0:
        raise ValueError("length must be non-negative")
    return secrets.token_bytes(length)


def get_secure_random_int(max_value: int) -> int:
    """
    Return a uniformly distributed integer in [0, max_value).

    Uses rejection sampling over unsigned 32-bit big-endian draws so the
    result carries no modulo bias.

    Raises:
        ValueError: if max_value <= 0 or max_value > 2^32 - 1
    """
    if isinstance(max_value, bool) or not isinstance(max_value, int):
        raise ValueError("max_value must be an integer")
    if max_value <= 0:
        raise ValueError("max_value must be positive")
    if max_value > MAX_RANDOM_INT:
        raise ValueError("max_value must be <= 2^32 - 1")

    limit = MAX_RANDOM_INT - (MAX_RANDOM_INT % max_value)
    while True:
        value = int.from_bytes(get_random_bytes(4), "big")
        if value < limit:
            return value % max_value


def get_random_string(length: int, alphabet: str) -> str:
    """Draw ``length`` independent characters from ``alphabet``."""
    if not alphabet:
        raise ValueError("alphabet cannot be empty")
    return "".join(alphabet[get_secure_random_int(len(alphabet))] for _ in range(length))
