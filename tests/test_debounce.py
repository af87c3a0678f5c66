import asyncio

import pytest

from crm_panel.client.debounce import Debouncer

DELAY = 0.05


async def settle():
    await asyncio.sleep(DELAY * 4)


async def test_value_lags_until_input_is_stable():
    seen = []
    debouncer = Debouncer("", DELAY, on_settle=seen.append)

    debouncer.push("b")
    debouncer.push("bl")
    debouncer.push("blue")
    assert debouncer.value == ""
    assert debouncer.pending

    await settle()

    assert debouncer.value == "blue"
    assert seen == ["blue"]
    assert not debouncer.pending


async def test_new_input_cancels_previous_timer():
    seen = []
    debouncer = Debouncer(0, DELAY, on_settle=seen.append)

    debouncer.push(1)
    await asyncio.sleep(DELAY / 2)
    debouncer.push(2)
    await asyncio.sleep(DELAY / 2)
    assert seen == []

    await settle()
    assert seen == [2]


async def test_cancel_drops_pending_update():
    seen = []
    debouncer = Debouncer("x", DELAY, on_settle=seen.append)

    debouncer.push("y")
    debouncer.cancel()
    await settle()

    assert debouncer.value == "x"
    assert seen == []


async def test_flush_settles_immediately():
    seen = []
    debouncer = Debouncer(None, DELAY, on_settle=seen.append)

    debouncer.push("now")
    debouncer.flush()

    assert debouncer.value == "now"
    assert seen == ["now"]
    await settle()
    assert seen == ["now"]


async def test_reset_is_silent():
    seen = []
    debouncer = Debouncer("a", DELAY, on_settle=seen.append)

    debouncer.push("b")
    debouncer.reset("")
    await settle()

    assert debouncer.value == ""
    assert seen == []


def test_negative_delay_rejected():
    with pytest.raises(ValueError):
        Debouncer("", -1)
