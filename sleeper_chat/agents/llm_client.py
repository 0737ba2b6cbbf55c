"""
Streaming chat-completions client with function calling.

Talks to an OpenAI-compatible /chat/completions endpoint over httpx and turns the
server-sent event stream into text deltas or a single function-call selection.
"""

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Literal, Optional, Union

import httpx
from pydantic import BaseModel

from sleeper_chat.config import settings

logger = logging.getLogger(__name__)


class LLMServiceError(Exception):
    """The LLM provider could not be reached or answered with an error."""


class TextDelta(BaseModel):
    type: Literal["text_delta"] = "text_delta"
    content: str


class FunctionCall(BaseModel):
    type: Literal["function_call"] = "function_call"
    name: str
    arguments: str = ""


LLMEvent = Union[TextDelta, FunctionCall]


class OpenAIChatClient:
    """Minimal streaming client for OpenAI chat completions."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.model = model or settings.OPENAI_MODEL
        self.base_url = (base_url or settings.OPENAI_BASE_URL).rstrip("/")
        self.temperature = temperature if temperature is not None else settings.AGENT_TEMPERATURE
        self.timeout = timeout if timeout is not None else settings.AGENT_TIMEOUT
        self._transport = transport
        logger.info(f"Created OpenAIChatClient with model {self.model}")

    def build_payload(self, messages: List[Dict[str, Any]], functions: Optional[List[Dict]] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "stream": True
        }
        if functions:
            payload["functions"] = functions
            payload["function_call"] = "auto"
        return payload

    async def stream_chat(
        self,
        messages: List[Dict[str, Any]],
        functions: Optional[List[Dict]] = None
    ) -> AsyncIterator[LLMEvent]:
        """
        Stream one model turn.

        Yields TextDelta events as text arrives. If the model selects a function,
        a single FunctionCall is yielded once its arguments are complete.

        Raises:
            LLMServiceError: missing key, transport failure or non-200 response
        """
        if not self.api_key or self.api_key == "placeholder-key":
            raise LLMServiceError("No OpenAI API key configured")

        payload = self.build_payload(messages, functions)
        logger.info(f"Calling {self.model} with {len(messages)} messages and {len(functions or [])} functions")

        function_name = ""
        argument_parts: List[str] = []

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                async with client.stream(
                    "POST",
                    f"{self.base_url}/chat/completions",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json"
                    },
                    json=payload
                ) as response:
                    if response.status_code != 200:
                        body = (await response.aread()).decode("utf-8", errors="replace")
                        logger.error(f"❌ OpenAI API returned status {response.status_code}: {body[:500]}")
                        if response.status_code == 401:
                            raise LLMServiceError("Invalid OpenAI API key (401 Unauthorized)")
                        raise LLMServiceError(f"OpenAI API returned status {response.status_code}")

                    async for line in response.aiter_lines():
                        if not line.startswith("data:"):
                            continue
                        data = line[len("data:"):].strip()
                        if data == "[DONE]":
                            break

                        try:
                            chunk = json.loads(data)
                        except json.JSONDecodeError:
                            logger.warning(f"Skipping undecodable stream chunk: {data[:200]}")
                            continue

                        choices = chunk.get("choices") or []
                        if not choices:
                            continue
                        delta = choices[0].get("delta") or {}

                        function_call = delta.get("function_call")
                        if function_call:
                            function_name += function_call.get("name") or ""
                            argument_parts.append(function_call.get("arguments") or "")
                            continue

                        content = delta.get("content")
                        if content:
                            yield TextDelta(content=content)

        except httpx.TimeoutException as e:
            logger.error(f"❌ OpenAI call timed out: {e}")
            raise LLMServiceError("The AI service timed out") from e
        except httpx.RequestError as e:
            logger.error(f"❌ OpenAI call failed: {e}")
            raise LLMServiceError(f"Could not reach the AI service: {e}") from e

        if function_name:
            arguments = "".join(argument_parts)
            logger.info(f"🔧 Model selected {function_name} with args: {arguments}")
            yield FunctionCall(name=function_name, arguments=arguments)
