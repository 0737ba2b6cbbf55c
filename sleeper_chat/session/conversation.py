"""
Conversation state for chat sessions.

Each chat session owns an append-only list of messages that doubles as the LLM's
memory: function-role messages carry the JSON snapshot of a function's result.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from sleeper_chat.services.roster_owner_cache import RosterOwnerCache

logger = logging.getLogger(__name__)

MessageRole = Literal["user", "assistant", "system", "function", "data", "tool"]

# Roles the chat-completions API accepts in the message history
LLM_ROLES = {"user", "assistant", "system", "function"}


def new_message_id() -> str:
    return uuid.uuid4().hex[:16]


class ChatMessage(BaseModel):
    """Single entry of a conversation."""

    id: str = Field(default_factory=new_message_id, description="Message identifier")
    role: MessageRole = Field(..., description="Author role")
    content: str = Field("", description="Text, or a JSON snapshot for function messages")
    name: Optional[str] = Field(None, description="Function name for function messages")
    function_call: Optional[Dict[str, str]] = Field(
        None, description="{name, arguments} when the assistant selected a function"
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_llm_message(self) -> Dict[str, Any]:
        """Shape the message for a chat-completions request. Content is passed through untouched."""
        message: Dict[str, Any] = {"role": self.role, "content": self.content}
        if self.function_call:
            message["content"] = self.content or None
            message["function_call"] = dict(self.function_call)
        if self.name:
            message["name"] = self.name
        return message


class ConversationState(BaseModel):
    """Messages of one chat, identified by chat_id."""

    chat_id: str = Field(..., description="Chat session identifier")
    messages: List[ChatMessage] = Field(default_factory=list, description="Append-only message log")


class ChatSession:
    """A live chat: its conversation state plus session-scoped caches."""

    def __init__(self, chat_id: str):
        self.state = ConversationState(chat_id=chat_id)
        self.roster_owners = RosterOwnerCache()
        # Serializes turns so appends keep their causal order
        self.lock = asyncio.Lock()
        self.created_at = datetime.now(timezone.utc)
        self.last_message_at: Optional[datetime] = None

    @property
    def chat_id(self) -> str:
        return self.state.chat_id

    @property
    def messages(self) -> List[ChatMessage]:
        return self.state.messages

    def append(self, message: ChatMessage) -> ChatMessage:
        self.state.messages.append(message)
        self.last_message_at = message.created_at
        logger.debug(f"Chat {self.chat_id}: appended {message.role} message {message.id}")
        return message

    def append_user(self, content: str) -> ChatMessage:
        return self.append(ChatMessage(role="user", content=content))

    def append_assistant(self, content: str) -> ChatMessage:
        return self.append(ChatMessage(role="assistant", content=content))

    def append_function_call(self, name: str, arguments: str) -> ChatMessage:
        return self.append(ChatMessage(
            role="assistant",
            content="",
            function_call={"name": name, "arguments": arguments}
        ))

    def append_function_result(self, name: str, content: str) -> ChatMessage:
        return self.append(ChatMessage(role="function", name=name, content=content))

    def append_system(self, content: str) -> ChatMessage:
        return self.append(ChatMessage(role="system", content=content))

    def llm_history(self, max_messages: int = 0) -> List[Dict[str, Any]]:
        """
        Conversation history in chat-completions format.

        Args:
            max_messages: Keep only the most recent N messages (0 keeps everything)
        """
        messages = [m for m in self.state.messages if m.role in LLM_ROLES]
        if max_messages and len(messages) > max_messages:
            messages = messages[-max_messages:]
            # Never start on a function result whose call was cut off
            while messages and messages[0].role == "function":
                messages = messages[1:]
        return [m.to_llm_message() for m in messages]


class ConversationStore:
    """In-process registry of chat sessions keyed by chat_id."""

    def __init__(self):
        self._sessions: Dict[str, ChatSession] = {}

    def create(self, chat_id: Optional[str] = None) -> ChatSession:
        chat_id = chat_id or uuid.uuid4().hex
        if chat_id in self._sessions:
            logger.info(f"Chat session {chat_id} already exists, reusing it")
            return self._sessions[chat_id]

        session = ChatSession(chat_id)
        self._sessions[chat_id] = session
        logger.info(f"Created chat session {chat_id}")
        return session

    def get(self, chat_id: str) -> Optional[ChatSession]:
        return self._sessions.get(chat_id)

    def get_or_create(self, chat_id: str) -> ChatSession:
        return self._sessions.get(chat_id) or self.create(chat_id)

    def end(self, chat_id: str) -> bool:
        """Tear down a chat session. Returns False when it did not exist."""
        session = self._sessions.pop(chat_id, None)
        if session is None:
            return False
        logger.info(f"Ended chat session {chat_id} ({len(session.messages)} messages)")
        return True

    def list_sessions(self) -> List[ChatSession]:
        return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)
