"""
Tests for the purchase confirmation flow.
"""

import json

import pytest

from sleeper_chat.agents.purchase import confirm_purchase
from sleeper_chat.session.conversation import ChatSession
from sleeper_chat.ui.fragments import PurchaseStatusFragment, SystemNoticeFragment
from sleeper_chat.ui.streaming import UIChannel


@pytest.mark.asyncio
async def test_purchase_commits_total_cost():
    session = ChatSession("chat-1")
    channel = UIChannel()

    result = await confirm_purchase(session, "AAPL", 150, 3, channel, step_delay=0)

    assert result.total == 450
    assert session.messages[-1].role == "system"
    assert session.messages[-1].content == "[User has purchased 3 shares of AAPL at 150. Total cost = 450]"


@pytest.mark.asyncio
async def test_purchase_status_sequence():
    channel = UIChannel()

    await confirm_purchase(ChatSession("chat-1"), "AAPL", 150.0, 3.0, channel, step_delay=0)

    status_events = [e for e in channel.events if isinstance(e.fragment, PurchaseStatusFragment)]
    assert [(e.state, e.fragment.message) for e in status_events] == [
        ("pending", "Purchasing 3 $AAPL..."),
        ("updating", "Purchasing 3 $AAPL... working on it..."),
        ("final", "You have successfully purchased 3 $AAPL. Total cost: $450.00"),
    ]
    assert status_events[-1].fragment.in_progress is False

    notice = channel.final_fragments()[-1]
    assert notice == SystemNoticeFragment(content="You have purchased 3 shares of AAPL at $150. Total cost = $450.00.")
    assert channel.unfinished() == []


@pytest.mark.asyncio
async def test_purchase_records_function_snapshot():
    session = ChatSession("chat-1")

    await confirm_purchase(session, "TSLA", 200.5, 2, UIChannel(), step_delay=0)

    call, result = session.messages[0], session.messages[1]
    assert call.function_call["name"] == "showStockPurchase"
    assert result.role == "function"
    assert result.name == "showStockPurchase"
    assert json.loads(result.content) == {
        "symbol": "TSLA", "price": 200.5, "defaultAmount": 2, "status": "completed"
    }
    assert session.messages[2].content == "[User has purchased 2 shares of TSLA at 200.5. Total cost = 401]"
