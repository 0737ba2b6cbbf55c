"""
Shared fixtures: Sleeper and OpenAI are faked with httpx.MockTransport.
"""

import json
from typing import Callable, Dict, List, Union

import httpx
import pytest

from sleeper_chat.agents.llm_client import OpenAIChatClient
from sleeper_chat.services.player_directory import PlayerDirectory
from sleeper_chat.services.sleeper_service import SleeperService


RouteValue = Union[httpx.Response, Callable[[httpx.Request], httpx.Response], object]


@pytest.fixture
def sleeper_factory():
    """
    Build a SleeperService whose requests are answered from a route table.

    Routes map paths (without the /v1 prefix) to a JSON payload, an httpx.Response
    or a callable taking the request. Unknown paths answer 404 and None answers a
    literal null body. Requested raw paths are recorded on service.requested_paths.
    """
    def factory(routes: Dict[str, RouteValue], max_retries: int = 0) -> SleeperService:
        requested: List[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            # raw path keeps percent-escapes so an encoded id never matches another route
            path = request.url.raw_path.decode("ascii").split("?", 1)[0]
            if path.startswith("/v1"):
                path = path[len("/v1"):]
            requested.append(path)

            if path not in routes:
                return httpx.Response(404, text="null")
            value = routes[path]
            if value is None:
                return httpx.Response(200, content=b"null", headers={"content-type": "application/json"})
            if callable(value):
                return value(request)
            if isinstance(value, httpx.Response):
                return value
            return httpx.Response(200, json=value)

        service = SleeperService(
            base_url="https://sleeper.test/v1",
            timeout=5,
            max_retries=max_retries,
            retry_backoff=0,
            transport=httpx.MockTransport(handler)
        )
        service.requested_paths = requested
        return service

    return factory


@pytest.fixture
def players() -> PlayerDirectory:
    return PlayerDirectory.from_file()


class SSE:
    """Builders for chat-completions server-sent event streams."""

    @staticmethod
    def _response(chunks: List[dict]) -> httpx.Response:
        body = "".join(f"data: {json.dumps(chunk)}\n\n" for chunk in chunks) + "data: [DONE]\n\n"
        return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=body.encode())

    @classmethod
    def text(cls, *parts: str) -> httpx.Response:
        chunks = [{"choices": [{"index": 0, "delta": {"role": "assistant", "content": ""}}]}]
        chunks += [{"choices": [{"index": 0, "delta": {"content": part}}]} for part in parts]
        chunks.append({"choices": [{"index": 0, "delta": {}, "finish_reason": "stop"}]})
        return cls._response(chunks)

    @classmethod
    def function_call(cls, name: str, arguments: Union[str, dict]) -> httpx.Response:
        raw = arguments if isinstance(arguments, str) else json.dumps(arguments)
        middle = len(raw) // 2
        chunks = [
            {"choices": [{"index": 0, "delta": {
                "role": "assistant", "content": None, "function_call": {"name": name, "arguments": ""}
            }}]},
            {"choices": [{"index": 0, "delta": {"function_call": {"arguments": raw[:middle]}}}]},
            {"choices": [{"index": 0, "delta": {"function_call": {"arguments": raw[middle:]}}}]},
            {"choices": [{"index": 0, "delta": {}, "finish_reason": "function_call"}]}
        ]
        return cls._response(chunks)


@pytest.fixture
def sse():
    return SSE


@pytest.fixture
def llm_factory():
    """
    Build an OpenAIChatClient that answers successive requests with the given
    responses. Request payloads are recorded on client.sent_payloads.
    """
    def factory(*responses: httpx.Response, api_key: str = "sk-test") -> OpenAIChatClient:
        queue = list(responses)
        sent: List[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(json.loads(request.content))
            if not queue:
                return httpx.Response(500, json={"error": "no scripted response left"})
            return queue.pop(0)

        client = OpenAIChatClient(
            api_key=api_key,
            model="gpt-test",
            base_url="https://llm.test/v1",
            temperature=0,
            timeout=5,
            transport=httpx.MockTransport(handler)
        )
        client.sent_payloads = sent
        return client

    return factory
