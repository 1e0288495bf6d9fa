import asyncio

import pytest

from legends_api.services.locks import KeyedLock


@pytest.mark.asyncio
async def test_same_key_is_serialized_and_released() -> None:
    locks = KeyedLock()
    order: list[str] = []

    async def worker(name: str) -> None:
        async with locks.hold("member"):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_different_keys_do_not_block_each_other() -> None:
    locks = KeyedLock()
    entered = asyncio.Event()

    async def holder() -> None:
        async with locks.hold("first"):
            await asyncio.wait_for(entered.wait(), timeout=1)

    async def other() -> None:
        async with locks.hold("second"):
            entered.set()

    await asyncio.gather(holder(), other())
    assert len(locks) == 0
