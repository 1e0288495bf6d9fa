"""Short human-facing codes with bounded collision avoidance."""

from __future__ import annotations

import secrets
from typing import Awaitable, Callable
from uuid import uuid4

from loguru import logger

from legends_api.services.errors import GenerationExhausted

MAX_ATTEMPTS = 10
CARD_NUMBER_PREFIX = "LEG-"
QR_TOKEN_BYTES = 24
ENTRY_CODE_LENGTH = 6

CandidateFactory = Callable[[], str]
ExistsCheck = Callable[[str], Awaitable[bool]]


def generate_entry_code() -> str:
    """Six ASCII digits, zero padded."""

    return f"{secrets.randbelow(10 ** ENTRY_CODE_LENGTH):0{ENTRY_CODE_LENGTH}d}"


def generate_qr_token() -> str:
    """48 hex characters from a CSPRNG."""

    return secrets.token_hex(QR_TOKEN_BYTES)


def generate_card_number() -> str:
    return f"{CARD_NUMBER_PREFIX}{uuid4().hex[:8].upper()}"


def is_valid_entry_code(value: object) -> bool:
    return isinstance(value, str) and len(value) == ENTRY_CODE_LENGTH and value.isascii() and value.isdigit()


async def generate_unique_code(
    produce: CandidateFactory,
    exists: ExistsCheck,
    *,
    initial: str | None = None,
    max_attempts: int = MAX_ATTEMPTS,
    fallback_unchecked: bool = False,
    kind: str = "code",
) -> str:
    """Return the first candidate for which ``exists`` is false.

    ``initial`` is tried first; a fresh candidate is produced only when
    none was supplied or the previous one collided. When every attempt
    collides, either one last unchecked candidate is returned
    (``fallback_unchecked``) or :class:`GenerationExhausted` is raised.
    """

    candidate = initial
    for attempt in range(max_attempts):
        if not candidate:
            candidate = produce()
        if not await exists(candidate):
            return candidate
        logger.debug("Unique code collision", kind=kind, attempt=attempt + 1)
        candidate = None

    if fallback_unchecked:
        logger.warning("Unique code attempts exhausted, using unchecked candidate", kind=kind)
        return produce()

    logger.error("Unique code attempts exhausted", kind=kind, attempts=max_attempts)
    raise GenerationExhausted()


async def unique_entry_code(exists: ExistsCheck, *, initial: str | None = None) -> str:
    """Keep a valid ``initial`` code when it is free, otherwise draw a new one."""

    return await generate_unique_code(
        generate_entry_code,
        exists,
        initial=initial if is_valid_entry_code(initial) else None,
        fallback_unchecked=True,
        kind="entry_code",
    )


async def unique_card_number(exists: ExistsCheck) -> str:
    return await generate_unique_code(generate_card_number, exists, kind="card_number")


__all__ = [
    "CARD_NUMBER_PREFIX",
    "MAX_ATTEMPTS",
    "generate_card_number",
    "generate_entry_code",
    "generate_qr_token",
    "generate_unique_code",
    "is_valid_entry_code",
    "unique_card_number",
    "unique_entry_code",
]
