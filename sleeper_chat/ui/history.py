"""
Rebuild a chat's display from its stored conversation.
"""

import json
import logging
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from sleeper_chat.session.conversation import ChatMessage
from sleeper_chat.ui.fragments import (
    PurchaseStatusFragment, SystemNoticeFragment, TextFragment, UIFragment, format_currency,
    format_number, render_error, render_league_details, render_league_list, render_roster,
    render_user_card
)

logger = logging.getLogger(__name__)


class HistoryItem(BaseModel):
    """A stored message paired with the fragment that displays it."""

    message_id: str
    fragment: UIFragment = Field(..., discriminator="kind")


def _render_function_result(name: Optional[str], result) -> Optional[UIFragment]:
    if isinstance(result, dict) and "error" in result:
        return render_error(str(result["error"]))

    if name == "getUserInfo":
        return render_user_card(
            result.get("userInfo"), result.get("userLeagues") or [], username=result.get("username")
        )
    if name == "getAllUserLeaguesAndDetails":
        return render_league_list(result or [])
    if name == "getIndividualLeagueDetails":
        return render_league_details(result)
    if name == "getUserRosterByRosterId":
        return render_roster(result.get("players") or [])
    if name == "showStockPurchase":
        amount = result.get("defaultAmount")
        price = result.get("price")
        message = f"Purchase of {format_number(amount)} ${result.get('symbol')}: {result.get('status')}"
        if isinstance(amount, (int, float)) and isinstance(price, (int, float)):
            message = (
                f"You have successfully purchased {format_number(amount)} ${result.get('symbol')}. "
                f"Total cost: {format_currency(amount * price)}"
            )
        return PurchaseStatusFragment(message=message, in_progress=False)

    logger.warning(f"No renderer for function result '{name}'")
    return None


def render_message(message: ChatMessage) -> Optional[UIFragment]:
    """Fragment for one stored message, or None if it has no visible form."""
    if message.role == "user":
        return TextFragment(role="user", content=message.content)

    if message.role == "assistant":
        # Function-call turns are displayed through their result message
        if message.function_call:
            return None
        return TextFragment(role="assistant", content=message.content)

    if message.role == "system":
        return SystemNoticeFragment(content=message.content)

    if message.role == "function":
        try:
            result = json.loads(message.content)
        except json.JSONDecodeError:
            logger.warning(f"Function message {message.id} does not hold JSON")
            return None
        try:
            return _render_function_result(message.name, result)
        except (AttributeError, ValidationError) as e:
            logger.warning(f"Could not re-render {message.name} message {message.id}: {e}")
            return None

    return None


def rebuild_ui_state(messages: List[ChatMessage]) -> List[HistoryItem]:
    """Turn a conversation back into display fragments, in message order."""
    items = []
    for message in messages:
        fragment = render_message(message)
        if fragment is not None:
            items.append(HistoryItem(message_id=message.id, fragment=fragment))
    logger.debug(f"Rebuilt {len(items)} fragments from {len(messages)} messages")
    return items
