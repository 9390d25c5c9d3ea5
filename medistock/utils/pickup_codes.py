# medistock/utils/pickup_codes.py
import logging
import secrets
from typing import Callable

logger = logging.getLogger(__name__)

# Uppercase letters and digits minus look-alikes (0/O, 1/I) for terminal entry
PICKUP_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def random_pickup_code(length: int) -> str:
    return "".join(secrets.choice(PICKUP_CODE_ALPHABET) for _ in range(length))


def normalize_pickup_code(code: str) -> str:
    return (code or "").strip().upper()


def generate_pickup_code(
    is_taken: Callable[[str], bool],
    *,
    length: int = 6,
    fallback_length: int = 8,
    max_attempts: int = 5,
    draw: Callable[[int], str] = random_pickup_code,
) -> str | None:
    """
    Draw a pickup code that no live reservation carries.

    The first ``max_attempts`` draws use ``length`` characters; if all of them
    collide, another ``max_attempts`` draws use ``fallback_length``.
    Returns None when every draw collided.

    Example: "K7QMZ4"
    """
    for current_length in (length, fallback_length):
        for _ in range(max_attempts):
            candidate = draw(current_length)
            if not is_taken(candidate):
                return candidate
        logger.warning(
            "Pickup code space congested: %s collisions at length %s", max_attempts, current_length
        )
    return None
