"""
Initialize agents package.
"""

from .chat_turn import ChatTurnHandler, TurnResult, TurnState
from .functions import SLEEPER_FUNCTIONS, ChatFunctions
from .llm_client import LLMServiceError, OpenAIChatClient
from .personas import SLEEPER_ASSISTANT_PROMPT
from .purchase import confirm_purchase

__all__ = [
    "ChatTurnHandler",
    "TurnResult",
    "TurnState",
    "SLEEPER_FUNCTIONS",
    "ChatFunctions",
    "LLMServiceError",
    "OpenAIChatClient",
    "SLEEPER_ASSISTANT_PROMPT",
    "confirm_purchase"
]
