import re

import pytest

from legends_api.services.codes import (
    MAX_ATTEMPTS,
    generate_card_number,
    generate_entry_code,
    generate_qr_token,
    generate_unique_code,
    is_valid_entry_code,
    unique_card_number,
    unique_entry_code,
)
from legends_api.services.errors import GenerationExhausted


def _store(codes):
    async def exists(candidate: str) -> bool:
        return candidate in codes

    return exists


def test_generated_formats() -> None:
    assert re.fullmatch(r"\d{6}", generate_entry_code())
    assert re.fullmatch(r"[0-9a-f]{48}", generate_qr_token())
    assert re.fullmatch(r"LEG-[0-9A-F]{8}", generate_card_number())


def test_entry_code_validation() -> None:
    assert is_valid_entry_code("000123")
    assert not is_valid_entry_code("12345")
    assert not is_valid_entry_code("12a456")
    assert not is_valid_entry_code(None)


@pytest.mark.asyncio
async def test_unique_code_skips_existing_candidates() -> None:
    existing = {f"{value:06d}" for value in range(1, 6)}
    candidates = iter(["000001", "000002", "000003", "000042"])

    code = await generate_unique_code(lambda: next(candidates), _store(existing))

    assert code == "000042"
    assert code not in existing


@pytest.mark.asyncio
async def test_unique_code_keeps_free_initial_candidate() -> None:
    code = await unique_entry_code(_store({"000001"}), initial="424242")
    assert code == "424242"


@pytest.mark.asyncio
async def test_unique_entry_code_replaces_invalid_initial() -> None:
    code = await unique_entry_code(_store(set()), initial="abc")
    assert is_valid_entry_code(code)


@pytest.mark.asyncio
async def test_entry_code_falls_back_to_unchecked_candidate_after_collisions() -> None:
    produced: list[str] = []

    def produce() -> str:
        produced.append(f"{len(produced):06d}")
        return produced[-1]

    async def always_taken(candidate: str) -> bool:
        return True

    code = await generate_unique_code(produce, always_taken, fallback_unchecked=True)

    assert len(produced) == MAX_ATTEMPTS + 1
    assert code == produced[-1]


@pytest.mark.asyncio
async def test_card_number_exhaustion_raises() -> None:
    async def always_taken(candidate: str) -> bool:
        return True

    with pytest.raises(GenerationExhausted) as excinfo:
        await unique_card_number(always_taken)

    assert excinfo.value.message == "Failed to generate unique card number. Please try again."
    assert excinfo.value.status_code == 503
