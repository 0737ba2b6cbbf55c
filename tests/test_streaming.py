"""
Tests for the fragment event channel.
"""

import pytest

from sleeper_chat.ui.fragments import ErrorFragment, SpinnerFragment, TextFragment
from sleeper_chat.ui.streaming import UIChannel


@pytest.mark.asyncio
async def test_fragment_lifecycle_is_pending_updating_final():
    received = []

    async def listener(event):
        received.append(event)

    channel = UIChannel(listener=listener)
    handle = await channel.open(SpinnerFragment())
    await handle.update(TextFragment(content="Hel"), delta="Hel")
    await handle.update(TextFragment(content="Hello"), delta="lo")
    await handle.done()

    assert [event.state for event in channel.events] == ["pending", "updating", "updating", "final"]
    assert received == channel.events
    assert {event.fragment_id for event in channel.events} == {handle.fragment_id}
    assert channel.events[-1].fragment == TextFragment(content="Hello")
    assert channel.final_fragments() == [TextFragment(content="Hello")]
    assert channel.unfinished() == []


@pytest.mark.asyncio
async def test_final_fragment_rejects_further_updates():
    channel = UIChannel()
    handle = await channel.open(SpinnerFragment())
    await handle.done(ErrorFragment(message="nope"))

    with pytest.raises(RuntimeError):
        await handle.update(TextFragment(content="late"))
    with pytest.raises(RuntimeError):
        await handle.done()


@pytest.mark.asyncio
async def test_publish_and_unfinished():
    channel = UIChannel()
    await channel.publish(TextFragment(content="done"))
    pending = await channel.open(SpinnerFragment())

    assert [event.state for event in channel.events] == ["pending", "final", "pending"]
    assert channel.unfinished() == [pending.fragment_id]


@pytest.mark.asyncio
async def test_events_serialize_with_fragment_kind():
    channel = UIChannel()
    await channel.publish(ErrorFragment(message="boom"))

    payload = channel.events[-1].model_dump(mode="json")

    assert payload["state"] == "final"
    assert payload["fragment"]["kind"] == "error"
    assert payload["fragment"]["message"] == "boom"
