"""Unit tests for private group access codes."""

import random

import pytest

from core.exceptions import CodeGenerationExhaustedError, ErrorCode
from domain.services.access_code import (
    ACCESS_CODE_ALPHABET,
    ACCESS_CODE_LENGTH,
    draw_access_code,
    generate_unique_access_code,
)


def test_draw_uses_alphabet():
    code = draw_access_code(random.Random(7))

    assert len(code) == ACCESS_CODE_LENGTH
    assert set(code) <= set(ACCESS_CODE_ALPHABET)


def test_draw_is_deterministic_for_seeded_rng():
    assert draw_access_code(random.Random(3)) == draw_access_code(random.Random(3))


class TestGenerateUniqueAccessCode:
    @pytest.mark.asyncio
    async def test_returns_first_free_code(self):
        async def never_taken(code: str) -> bool:
            return False

        code = await generate_unique_access_code(never_taken, rng=random.Random(1))

        assert code == draw_access_code(random.Random(1))

    @pytest.mark.asyncio
    async def test_retries_past_collisions(self):
        taken = {draw_access_code(random.Random(5))}
        checked: list[str] = []

        async def is_taken(code: str) -> bool:
            checked.append(code)
            return code in taken

        code = await generate_unique_access_code(is_taken, rng=random.Random(5))

        assert code not in taken
        assert len(checked) == 2

    @pytest.mark.asyncio
    async def test_exhaustion_raises(self):
        calls = 0

        async def always_taken(code: str) -> bool:
            nonlocal calls
            calls += 1
            return True

        with pytest.raises(CodeGenerationExhaustedError) as exc_info:
            await generate_unique_access_code(
                always_taken, rng=random.Random(0), max_attempts=5
            )

        assert calls == 5
        assert exc_info.value.error_code == ErrorCode.CODE_GENERATION_EXHAUSTED
        assert exc_info.value.status_code == 503
