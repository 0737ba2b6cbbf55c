"""
FastAPI application for the Sleeper Chat Assistant API.
"""

import json
import logging
from datetime import datetime, timezone
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Depends, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
import uvicorn

from sleeper_chat import __version__
from sleeper_chat.config import settings
from sleeper_chat.agents.chat_turn import ChatTurnHandler
from sleeper_chat.agents.purchase import confirm_purchase
from sleeper_chat.api_models import (
    ErrorResponse, HealthResponse, ChatStartRequest, ChatStartResponse, ChatMessageRequest,
    ChatTurnResponse, PurchaseRequest, PurchaseResponse, ChatMessageResponse, ChatHistoryResponse
)
from sleeper_chat.dependencies import (
    get_chat_turn_handler, get_conversation_store, get_player_directory, get_sleeper_service
)
from sleeper_chat.services.player_directory import PlayerDirectory
from sleeper_chat.session.conversation import ChatSession, ConversationStore
from sleeper_chat.ui.history import rebuild_ui_state
from sleeper_chat.ui.streaming import UIChannel, UIEvent
from sleeper_chat.websocket_manager import connection_manager

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""

    # Startup
    logger.info("🏈 Starting Sleeper Chat Assistant API")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Log Level: {settings.log_level}")
    logger.info(f"API Port: {settings.api_port}")
    logger.info(f"Sleeper API: {settings.SLEEPER_API_BASE_URL}")

    try:
        players = get_player_directory()
        logger.info(f"✅ Player directory ready: {len(players)} players")
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load player directory: {e}")
        raise

    if not settings.has_openai_key():
        logger.warning("OPENAI_API_KEY not configured - the assistant will be unavailable")

    yield

    # Shutdown
    logger.info("🛑 Shutting down Sleeper Chat Assistant API")
    await get_sleeper_service().close()
    logger.info("✅ Shutdown complete")


# Initialize FastAPI application
app = FastAPI(
    title="Sleeper Chat Assistant API",
    version=__version__,
    description="Chat with your Sleeper fantasy leagues through LLM function calling",
    docs_url="/docs",
    lifespan=lifespan
)

logger.info(f"CORS Origins: {settings.cors_origins_list}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


def _get_session_or_404(store: ConversationStore, chat_id: str) -> ChatSession:
    session = store.get(chat_id)
    if session is None:
        raise HTTPException(
            status_code=404,
            detail=ErrorResponse(
                error="chat_not_found",
                message=f"Chat session {chat_id} not found"
            ).model_dump()
        )
    return session


def _broadcast_listener(chat_id: str):
    """UI event listener that forwards to the chat's WebSocket clients."""
    async def listener(event: UIEvent):
        await connection_manager.broadcast_ui_event(chat_id, event)
    return listener


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Sleeper Chat Assistant API",
        "version": __version__,
        "description": "Natural-language access to Sleeper users, leagues and rosters",
        "endpoints": {
            "health": "/health",
            "docs": "/docs",
            "start_chat": "/api/chat/start",
            "send_message": "/api/chat/{chat_id}/message",
            "websocket": "/ws/chat/{chat_id}"
        },
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(
    store: ConversationStore = Depends(get_conversation_store),
    players: PlayerDirectory = Depends(get_player_directory)
):
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        llm_configured=settings.has_openai_key(),
        players_loaded=len(players),
        active_chats=len(store),
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__
    )


# ===== Chat Endpoints =====

@app.post("/api/chat/start", response_model=ChatStartResponse, tags=["Chat"])
async def start_chat(
    request: ChatStartRequest,
    store: ConversationStore = Depends(get_conversation_store)
):
    """Start a new chat session and return its ID."""
    session = store.create(request.chat_id)
    return ChatStartResponse(
        chat_id=session.chat_id,
        status="active",
        message="Chat session started. Tell me your Sleeper username to get going."
    )


@app.post("/api/chat/{chat_id}/message", response_model=ChatTurnResponse, tags=["Chat"])
async def send_chat_message(
    chat_id: str,
    request: ChatMessageRequest,
    store: ConversationStore = Depends(get_conversation_store),
    handler: ChatTurnHandler = Depends(get_chat_turn_handler)
):
    """
    Run one chat turn.

    Returns every UI event the turn emitted plus the final fragments. Connected
    WebSocket clients of the chat receive the same events live.
    """
    session = _get_session_or_404(store, chat_id)

    try:
        channel = UIChannel(listener=_broadcast_listener(chat_id))
        result = await handler.submit_user_message(session, request.message, channel)

        return ChatTurnResponse(
            chat_id=chat_id,
            outcome=result.outcome,
            function_name=result.function_name,
            states=[state.value for state in result.states],
            events=channel.events,
            fragments=channel.final_fragments()
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error processing chat message for {chat_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=ErrorResponse(
                error="chat_turn_failed",
                message="Failed to process chat message",
                details={"error": str(e)}
            ).model_dump()
        )


@app.post("/api/chat/{chat_id}/purchase", response_model=PurchaseResponse, tags=["Chat"])
async def purchase_stock(
    chat_id: str,
    request: PurchaseRequest,
    store: ConversationStore = Depends(get_conversation_store)
):
    """Run the demo purchase confirmation flow."""
    session = _get_session_or_404(store, chat_id)

    channel = UIChannel(listener=_broadcast_listener(chat_id))
    result = await confirm_purchase(session, request.symbol, request.price, request.amount, channel)

    return PurchaseResponse(
        chat_id=chat_id,
        status_message=result.status_message,
        system_message=result.system_message,
        total=result.total,
        events=channel.events
    )


@app.get("/api/chat/{chat_id}/history", response_model=ChatHistoryResponse, tags=["Chat"])
async def get_chat_history(
    chat_id: str,
    store: ConversationStore = Depends(get_conversation_store)
):
    """Get the full conversation plus the fragments that display it."""
    session = _get_session_or_404(store, chat_id)

    messages = [
        ChatMessageResponse(
            id=msg.id,
            role=msg.role,
            content=msg.content,
            name=msg.name,
            function_call=msg.function_call,
            timestamp=msg.created_at.isoformat()
        )
        for msg in session.messages
    ]

    return ChatHistoryResponse(
        chat_id=chat_id,
        messages=messages,
        ui=rebuild_ui_state(session.messages),
        created_at=session.created_at.isoformat(),
        last_message_at=session.last_message_at.isoformat() if session.last_message_at else None,
        message_count=len(messages)
    )


@app.delete("/api/chat/{chat_id}", tags=["Chat"])
async def end_chat(
    chat_id: str,
    store: ConversationStore = Depends(get_conversation_store)
):
    """End a chat session and drop its state."""
    if not store.end(chat_id):
        raise HTTPException(status_code=404, detail="Chat session not found")

    return {"success": True, "message": "Chat session ended"}


@app.websocket("/ws/chat/{chat_id}")
async def websocket_chat(
    websocket: WebSocket,
    chat_id: str,
    store: ConversationStore = Depends(get_conversation_store),
    handler: ChatTurnHandler = Depends(get_chat_turn_handler)
):
    """
    WebSocket endpoint for chat turns.

    Client messages:
    - {"type": "user_message", "content": "..."}
    - {"type": "confirm_purchase", "symbol": "...", "price": 1.0, "amount": 1}
    - {"type": "ping"}

    The server pushes ui_event messages while a turn renders, then turn_complete.
    """
    await connection_manager.connect(websocket, chat_id)
    session = store.get_or_create(chat_id)
    listener = _broadcast_listener(chat_id)

    try:
        while True:
            message = await websocket.receive_text()

            try:
                data = json.loads(message)
            except json.JSONDecodeError:
                logger.warning(f"Received invalid JSON from WebSocket in chat {chat_id}")
                await connection_manager.send_error(websocket, "Invalid JSON")
                continue

            message_type = data.get("type", "unknown") if isinstance(data, dict) else "unknown"

            if message_type == "ping":
                await websocket.send_text(json.dumps({
                    "type": "pong",
                    "timestamp": datetime.now(timezone.utc).isoformat()
                }))

            elif message_type == "user_message":
                content = str(data.get("content") or "").strip()
                if not content:
                    await connection_manager.send_error(websocket, "Message content is required")
                    continue

                result = await handler.submit_user_message(session, content, UIChannel(listener=listener))
                await connection_manager.broadcast_to_chat(chat_id, {
                    "type": "turn_complete",
                    "data": result.model_dump(mode="json")
                })

            elif message_type == "confirm_purchase":
                try:
                    request = PurchaseRequest.model_validate(data)
                except ValidationError as e:
                    await connection_manager.send_error(websocket, f"Invalid purchase request: {e.error_count()} errors")
                    continue

                result = await confirm_purchase(
                    session, request.symbol, request.price, request.amount, UIChannel(listener=listener)
                )
                await connection_manager.broadcast_to_chat(chat_id, {
                    "type": "turn_complete",
                    "data": result.model_dump(mode="json")
                })

            else:
                await connection_manager.send_error(websocket, f"Unknown message type '{message_type}'")

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"Error in WebSocket connection for chat {chat_id}: {e}", exc_info=True)
    finally:
        connection_manager.disconnect(websocket)


if __name__ == "__main__":
    uvicorn.run(
        "sleeper_chat.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
        log_level=settings.log_level.lower()
    )
