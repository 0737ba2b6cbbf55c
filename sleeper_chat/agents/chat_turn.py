"""
Chat turn handler: one user message in, one committed conversation entry out.

A turn moves through these states:

    AWAITING_MODEL_OUTPUT -> STREAMING_TEXT -> COMMITTED
    AWAITING_MODEL_OUTPUT -> FUNCTION_SELECTED -> ARGS_VALIDATED -> FETCHING
                          -> RENDERED | ERRORING -> COMMITTED

The reply is rendered as a single fragment: a spinner while the model is
thinking, replaced by streamed text or by the selected function's card.
"""

import logging
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from sleeper_chat.agents.functions import (
    SLEEPER_FUNCTIONS, ChatFunctions, FunctionArgumentsError, parse_function_arguments
)
from sleeper_chat.agents.llm_client import FunctionCall, LLMServiceError, OpenAIChatClient, TextDelta
from sleeper_chat.agents.personas import get_system_message
from sleeper_chat.config import settings
from sleeper_chat.services.player_directory import PlayerDirectory
from sleeper_chat.services.sleeper_service import SleeperService
from sleeper_chat.session.conversation import ChatSession
from sleeper_chat.ui.fragments import TextFragment, render_error, spinner
from sleeper_chat.ui.streaming import UIChannel

logger = logging.getLogger(__name__)

LLM_UNAVAILABLE_REPLY = "I'm currently unable to connect to the AI service. Please try again in a moment."
UNEXPECTED_FUNCTION_ERROR = "Something went wrong while loading that from Sleeper. Please try again."


class TurnState(str, Enum):
    AWAITING_MODEL_OUTPUT = "awaiting_model_output"
    STREAMING_TEXT = "streaming_text"
    FUNCTION_SELECTED = "function_selected"
    ARGS_VALIDATED = "args_validated"
    FETCHING = "fetching"
    RENDERED = "rendered"
    ERRORING = "erroring"
    COMMITTED = "committed"


class TurnResult(BaseModel):
    """Summary of a completed turn."""

    chat_id: str
    outcome: str = Field(..., description="text, function or error")
    function_name: Optional[str] = None
    states: List[TurnState] = Field(default_factory=list)
    committed_message_ids: List[str] = Field(default_factory=list)


class ChatTurnHandler:
    """Runs user turns against the LLM and dispatches its function calls."""

    def __init__(
        self,
        llm_client: OpenAIChatClient,
        sleeper_service: SleeperService,
        player_directory: PlayerDirectory,
        max_history_messages: Optional[int] = None
    ):
        self.llm = llm_client
        self.sleeper = sleeper_service
        self.players = player_directory
        self.max_history_messages = (
            max_history_messages if max_history_messages is not None else settings.CHAT_MAX_HISTORY_MESSAGES
        )

    def build_messages(self, session: ChatSession) -> List[dict]:
        """System prompt followed by the session history."""
        return [{"role": "system", "content": get_system_message()}] + session.llm_history(self.max_history_messages)

    async def submit_user_message(self, session: ChatSession, content: str, channel: UIChannel) -> TurnResult:
        """
        Handle one user turn.

        Args:
            session: Chat session to read from and append to
            content: The user's message
            channel: Channel receiving the reply fragment's events

        Returns:
            TurnResult: What the turn did and which messages it committed
        """
        async with session.lock:
            logger.info(f"📨 Chat {session.chat_id}: user message '{content[:50]}'")
            session.append_user(content)

            result = TurnResult(chat_id=session.chat_id, outcome="text", states=[TurnState.AWAITING_MODEL_OUTPUT])
            reply = await channel.open(spinner())

            text_parts: List[str] = []
            call: Optional[FunctionCall] = None

            try:
                async for event in self.llm.stream_chat(self.build_messages(session), SLEEPER_FUNCTIONS):
                    if isinstance(event, TextDelta):
                        if not text_parts:
                            result.states.append(TurnState.STREAMING_TEXT)
                        text_parts.append(event.content)
                        await reply.update(TextFragment(content="".join(text_parts)), delta=event.content)
                    elif isinstance(event, FunctionCall):
                        call = event
                        break
            except LLMServiceError as e:
                logger.error(f"❌ LLM turn failed for chat {session.chat_id}: {e}")
                result.outcome = "error"
                result.states.append(TurnState.ERRORING)
                await reply.done(render_error(f"The assistant is unavailable: {e}"))
                message = session.append_assistant(LLM_UNAVAILABLE_REPLY)
                result.committed_message_ids.append(message.id)
                result.states.append(TurnState.COMMITTED)
                return result

            if call is None:
                text = "".join(text_parts)
                await reply.done(TextFragment(content=text))
                message = session.append_assistant(text)
                result.committed_message_ids.append(message.id)
                result.states.append(TurnState.COMMITTED)
                logger.info(f"✅ Chat {session.chat_id}: assistant replied with {len(text)} chars")
                return result

            if text_parts:
                logger.info(f"Dropping {len(text_parts)} text chunks that preceded a function call")

            await self._dispatch(session, call, reply, result)
            return result

    async def _dispatch(self, session: ChatSession, call: FunctionCall, reply, result: TurnResult):
        """Validate and run the selected function, then commit its result."""
        result.outcome = "function"
        result.function_name = call.name
        result.states.append(TurnState.FUNCTION_SELECTED)

        call_message = session.append_function_call(call.name, call.arguments)
        result.committed_message_ids.append(call_message.id)

        try:
            arguments = parse_function_arguments(call.name, call.arguments)
        except FunctionArgumentsError as e:
            logger.warning(f"Rejected function call {call.name}: {e}")
            outcome = ChatFunctions.error_outcome(call.name, str(e))
        else:
            result.states.append(TurnState.ARGS_VALIDATED)
            await reply.update(spinner())
            result.states.append(TurnState.FETCHING)
            functions = ChatFunctions(self.sleeper, self.players, session.roster_owners)
            try:
                outcome = await functions.execute(call.name, arguments)
            except Exception as e:
                # The call turn is already committed; it must still get a function result
                logger.exception(f"Unexpected error executing {call.name}: {e}")
                outcome = ChatFunctions.error_outcome(call.name, UNEXPECTED_FUNCTION_ERROR)

        result.states.append(TurnState.RENDERED if outcome.succeeded else TurnState.ERRORING)
        if not outcome.succeeded:
            result.outcome = "error"

        await reply.done(outcome.fragment)
        message = session.append_function_result(call.name, outcome.content)
        result.committed_message_ids.append(message.id)
        result.states.append(TurnState.COMMITTED)
        logger.info(f"✅ Chat {session.chat_id}: {call.name} committed ({len(outcome.content)} chars)")
