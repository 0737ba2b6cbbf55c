"""
Demo stock purchase confirmation.

Plays a short staged status sequence, then records the purchase in the
conversation so the model can refer to it on later turns.
"""

import asyncio
import json
import logging
from typing import Optional, Union

from pydantic import BaseModel

from sleeper_chat.config import settings
from sleeper_chat.session.conversation import ChatSession
from sleeper_chat.ui.fragments import PurchaseStatusFragment, SystemNoticeFragment, format_currency, format_number
from sleeper_chat.ui.streaming import UIChannel

logger = logging.getLogger(__name__)

Number = Union[int, float]


class PurchaseResult(BaseModel):
    chat_id: str
    symbol: str
    price: float
    amount: float
    total: float
    status_message: str
    system_message: str


async def confirm_purchase(
    session: ChatSession,
    symbol: str,
    price: Number,
    amount: Number,
    channel: UIChannel,
    step_delay: Optional[float] = None
) -> PurchaseResult:
    """
    Run the purchase confirmation sequence for one chat.

    Args:
        session: Chat session the purchase is recorded in
        symbol: Ticker symbol
        price: Price per share
        amount: Number of shares
        channel: Channel receiving the status and notice fragments
        step_delay: Seconds between status steps (defaults to PURCHASE_STEP_DELAY)

    Returns:
        PurchaseResult: Committed status and system messages
    """
    delay = settings.PURCHASE_STEP_DELAY if step_delay is None else step_delay
    total = amount * price
    shown_amount = format_number(amount)
    shown_price = format_number(price)

    async with session.lock:
        logger.info(f"💵 Chat {session.chat_id}: purchasing {shown_amount} {symbol} at {shown_price}")

        status = await channel.open(PurchaseStatusFragment(message=f"Purchasing {shown_amount} ${symbol}..."))

        await asyncio.sleep(delay)
        await status.update(PurchaseStatusFragment(
            message=f"Purchasing {shown_amount} ${symbol}... working on it..."
        ))

        await asyncio.sleep(delay)
        status_message = (
            f"You have successfully purchased {shown_amount} ${symbol}. "
            f"Total cost: {format_currency(total)}"
        )
        await status.done(PurchaseStatusFragment(message=status_message, in_progress=False))

        await channel.publish(SystemNoticeFragment(
            content=(
                f"You have purchased {shown_amount} shares of {symbol} at ${shown_price}. "
                f"Total cost = {format_currency(total)}."
            )
        ))

        session.append_function_call(
            "showStockPurchase",
            json.dumps({"symbol": symbol, "price": price, "amount": amount})
        )
        session.append_function_result("showStockPurchase", json.dumps({
            "symbol": symbol,
            "price": price,
            "defaultAmount": amount,
            "status": "completed"
        }))
        system_message = (
            f"[User has purchased {shown_amount} shares of {symbol} at {shown_price}. "
            f"Total cost = {format_number(total)}]"
        )
        session.append_system(system_message)

    logger.info(f"✅ Chat {session.chat_id}: purchase of {symbol} committed")
    return PurchaseResult(
        chat_id=session.chat_id,
        symbol=symbol,
        price=price,
        amount=amount,
        total=total,
        status_message=status_message,
        system_message=system_message
    )
