import asyncio

import pytest

from zumble.errors import MumbleError
from zumble.sync import ReadLockTimeout, RwLock, WriteLockTimeout


@pytest.mark.asyncio
async def test_read_yields_value():
    value = [1, 2]
    lock = RwLock(value)
    async with lock.read() as held:
        assert held is value


@pytest.mark.asyncio
async def test_write_mutation_is_visible():
    lock = RwLock({})
    async with lock.write() as held:
        held["a"] = 1
    async with lock.read() as held:
        assert held == {"a": 1}


@pytest.mark.asyncio
async def test_readers_share_the_lock():
    lock = RwLock("shared")
    async with lock.read() as first:
        async with lock.read() as second:
            assert first == second == "shared"


@pytest.mark.asyncio
async def test_write_times_out_while_read_held():
    lock = RwLock(0, timeout=0.05)
    async with lock.read():
        with pytest.raises(WriteLockTimeout) as info:
            async with lock.write():
                pass
    assert info.value.timeout_ms == 50
    assert "`write`" in str(info.value)


@pytest.mark.asyncio
async def test_read_times_out_while_write_held():
    lock = RwLock(0, timeout=0.05)
    async with lock.write():
        with pytest.raises(ReadLockTimeout) as info:
            async with lock.read():
                pass
    assert isinstance(info.value, MumbleError)
    assert "`read`" in str(info.value)


@pytest.mark.asyncio
async def test_default_timeout_is_reported():
    lock = RwLock(0)
    async with lock.write():
        with pytest.raises(ReadLockTimeout) as info:
            async with lock.read():
                pass
    assert info.value.timeout_ms == 250


@pytest.mark.asyncio
async def test_lock_usable_after_timeout():
    lock = RwLock([], timeout=0.05)
    async with lock.read():
        with pytest.raises(WriteLockTimeout):
            async with lock.write():
                pass
    async with lock.write() as held:
        held.append("ok")
    async with lock.read() as held:
        assert held == ["ok"]


@pytest.mark.asyncio
async def test_writer_waits_for_reader():
    lock = RwLock([], timeout=1.0)

    async def writer():
        async with lock.write() as held:
            held.append("w")

    async with lock.read() as held:
        task = asyncio.create_task(writer())
        await asyncio.sleep(0)
        assert held == []
        held_during_read = list(held)
    await task
    assert held_during_read == []
    async with lock.read() as held:
        assert held == ["w"]


@pytest.mark.asyncio
async def test_queued_writer_precedes_later_reader():
    lock = RwLock([], timeout=1.0)

    async def writer():
        async with lock.write() as held:
            held.append("w")
            await asyncio.sleep(0)

    async def reader():
        async with lock.read() as held:
            held.append("r")

    async with lock.read() as held:
        write_task = asyncio.create_task(writer())
        await asyncio.sleep(0)
        read_task = asyncio.create_task(reader())
        await asyncio.sleep(0)
        assert held == []
    await asyncio.gather(write_task, read_task)
    async with lock.read() as held:
        assert held == ["w", "r"]


@pytest.mark.asyncio
async def test_exception_in_block_releases_lock():
    lock = RwLock([], timeout=0.05)
    with pytest.raises(RuntimeError):
        async with lock.write():
            raise RuntimeError("boom")
    async with lock.write() as held:
        held.append(1)
    assert len(held) == 1