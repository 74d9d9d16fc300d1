"""Access codes for private study groups."""

import random
import secrets
import string
from collections.abc import Awaitable, Callable

import structlog

from core.exceptions import CodeGenerationExhaustedError

logger = structlog.get_logger()

ACCESS_CODE_ALPHABET = string.ascii_uppercase + string.digits
ACCESS_CODE_LENGTH = 6
MAX_ACCESS_CODE_ATTEMPTS = 5


def draw_access_code(
    rng: random.Random | None = None, length: int = ACCESS_CODE_LENGTH
) -> str:
    """Draw one code; uniqueness is not checked here."""
    rng = rng or secrets.SystemRandom()
    return "".join(rng.choice(ACCESS_CODE_ALPHABET) for _ in range(length))


async def generate_unique_access_code(
    is_taken: Callable[[str], Awaitable[bool]],
    *,
    rng: random.Random | None = None,
    length: int = ACCESS_CODE_LENGTH,
    max_attempts: int = MAX_ACCESS_CODE_ATTEMPTS,
) -> str:
    """Draw codes until one is not held by any other group.

    Raises:
        CodeGenerationExhaustedError: If all ``max_attempts`` draws collide.
    """
    rng = rng or secrets.SystemRandom()
    for attempt in range(1, max_attempts + 1):
        code = draw_access_code(rng, length)
        if not await is_taken(code):
            return code
        logger.info("access_code_collision", attempt=attempt)

    logger.warning("access_code_exhausted", attempts=max_attempts)
    raise CodeGenerationExhaustedError(max_attempts)
