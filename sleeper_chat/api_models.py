"""
FastAPI request/response models for the Sleeper chat API.
"""

from typing import Annotated, List, Dict, Any, Optional
from pydantic import BaseModel, Field

from sleeper_chat.ui.history import HistoryItem
from sleeper_chat.ui.streaming import UIEvent
from sleeper_chat.ui.fragments import UIFragment


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(..., description="Error type or code")
    message: str = Field(..., description="Human-readable error message")
    details: Dict[str, Any] = Field(default_factory=dict, description="Additional error details")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="Service status")
    llm_configured: bool = Field(..., description="Whether an OpenAI API key is configured")
    players_loaded: int = Field(..., description="Entries in the player directory")
    active_chats: int = Field(..., description="Open chat sessions")
    timestamp: str = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")


# Chat Models

class ChatStartRequest(BaseModel):
    """Request to start a chat session."""

    chat_id: Optional[str] = Field(None, description="Client-chosen chat ID; generated when omitted")


class ChatStartResponse(BaseModel):
    """Response from chat start."""

    chat_id: str = Field(..., description="Chat session identifier")
    status: str = Field(..., description="Session status")
    message: str = Field(..., description="Status message")


class ChatMessageRequest(BaseModel):
    """Request to send a chat message."""

    message: str = Field(..., min_length=1, max_length=4000, description="User's message")


class ChatTurnResponse(BaseModel):
    """Everything one turn rendered."""

    chat_id: str = Field(..., description="Chat session ID")
    outcome: str = Field(..., description="text, function or error")
    function_name: Optional[str] = Field(None, description="Function the model selected, if any")
    states: List[str] = Field(..., description="Turn state transitions")
    events: List[UIEvent] = Field(..., description="UI events in emission order")
    fragments: List[Annotated[UIFragment, Field(discriminator="kind")]] = Field(
        ..., description="Final content of each fragment"
    )


class PurchaseRequest(BaseModel):
    """Request to confirm a demo stock purchase."""

    symbol: str = Field(..., min_length=1, max_length=10, description="Ticker symbol")
    price: float = Field(..., gt=0, description="Price per share")
    amount: float = Field(..., gt=0, description="Number of shares")


class PurchaseResponse(BaseModel):
    """Result of the purchase confirmation flow."""

    chat_id: str = Field(..., description="Chat session ID")
    status_message: str = Field(..., description="Final purchase status text")
    system_message: str = Field(..., description="System message committed to the conversation")
    total: float = Field(..., description="Total cost")
    events: List[UIEvent] = Field(..., description="UI events in emission order")


class ChatMessageResponse(BaseModel):
    """One stored conversation message."""

    id: str = Field(..., description="Message ID")
    role: str = Field(..., description="Message role")
    content: str = Field(..., description="Message content")
    name: Optional[str] = Field(None, description="Function name for function messages")
    function_call: Optional[Dict[str, str]] = Field(None, description="Selected function, for call turns")
    timestamp: str = Field(..., description="ISO timestamp")


class ChatHistoryResponse(BaseModel):
    """Conversation history plus the fragments that display it."""

    chat_id: str = Field(..., description="Chat session ID")
    messages: List[ChatMessageResponse] = Field(..., description="Message history")
    ui: List[HistoryItem] = Field(..., description="Display fragments rebuilt from the messages")
    created_at: str = Field(..., description="Session creation timestamp")
    last_message_at: Optional[str] = Field(None, description="Last message timestamp")
    message_count: int = Field(..., description="Total message count")
