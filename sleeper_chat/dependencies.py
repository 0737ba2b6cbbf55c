"""
Shared dependency injection functions for FastAPI.
"""

from typing import Optional
import logging

from sleeper_chat.agents.chat_turn import ChatTurnHandler
from sleeper_chat.agents.llm_client import OpenAIChatClient
from sleeper_chat.services.player_directory import PlayerDirectory
from sleeper_chat.services.sleeper_service import SleeperService, sleeper_service
from sleeper_chat.session.conversation import ConversationStore
from sleeper_chat.config import settings

logger = logging.getLogger(__name__)

# Global service instances
_conversation_store: Optional[ConversationStore] = None
_player_directory: Optional[PlayerDirectory] = None
_llm_client: Optional[OpenAIChatClient] = None
_chat_turn_handler: Optional[ChatTurnHandler] = None


def get_sleeper_service() -> SleeperService:
    """
    Dependency to get the Sleeper service.

    Returns:
        SleeperService: Singleton Sleeper service instance
    """
    return sleeper_service


def get_conversation_store() -> ConversationStore:
    """
    Dependency to get the in-process chat session store.

    Returns:
        ConversationStore: Singleton store instance
    """
    global _conversation_store

    if _conversation_store is None:
        _conversation_store = ConversationStore()

    return _conversation_store


def get_player_directory() -> PlayerDirectory:
    """
    Dependency to get the static player directory.

    Returns:
        PlayerDirectory: Directory loaded once from PLAYER_DATA_PATH or the bundled table
    """
    global _player_directory

    if _player_directory is None:
        _player_directory = PlayerDirectory.from_file(settings.PLAYER_DATA_PATH or None)

    return _player_directory


def get_llm_client() -> OpenAIChatClient:
    """Dependency to get the chat-completions client."""
    global _llm_client

    if _llm_client is None:
        if not settings.has_openai_key():
            logger.warning("OPENAI_API_KEY not configured - chat turns will report the assistant as unavailable")
        _llm_client = OpenAIChatClient()

    return _llm_client


def get_chat_turn_handler() -> ChatTurnHandler:
    """Dependency to get the chat turn handler wired to the shared services."""
    global _chat_turn_handler

    if _chat_turn_handler is None:
        _chat_turn_handler = ChatTurnHandler(
            llm_client=get_llm_client(),
            sleeper_service=get_sleeper_service(),
            player_directory=get_player_directory()
        )

    return _chat_turn_handler
