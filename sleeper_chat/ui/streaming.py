"""
Event channel for incrementally rendered UI fragments.

Every fragment goes through pending -> updating* -> final. Each transition is
published as a UIEvent to the channel's listener (e.g. a WebSocket) and kept in
the channel log so a REST caller can return the whole turn at once.
"""

import logging
import uuid
from typing import Awaitable, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from sleeper_chat.ui.fragments import UIFragment

logger = logging.getLogger(__name__)

FragmentState = Literal["pending", "updating", "final"]


class UIEvent(BaseModel):
    """One state transition of a rendered fragment."""

    fragment_id: str = Field(..., description="Stable ID of the fragment being rendered")
    state: FragmentState = Field(..., description="pending, updating or final")
    fragment: UIFragment = Field(..., discriminator="kind", description="Current content of the fragment")
    delta: Optional[str] = Field(None, description="Text appended by this update (text fragments only)")


EventListener = Callable[[UIEvent], Awaitable[None]]


class StreamableFragment:
    """Handle on one fragment; updates are rejected once it is final."""

    def __init__(self, channel: "UIChannel", fragment_id: str, fragment: UIFragment):
        self.channel = channel
        self.fragment_id = fragment_id
        self.current = fragment
        self.is_done = False

    async def update(self, fragment: UIFragment, delta: Optional[str] = None):
        if self.is_done:
            raise RuntimeError(f"Fragment {self.fragment_id} is already final")
        self.current = fragment
        await self.channel.emit(UIEvent(
            fragment_id=self.fragment_id, state="updating", fragment=fragment, delta=delta
        ))

    async def done(self, fragment: Optional[UIFragment] = None):
        if self.is_done:
            raise RuntimeError(f"Fragment {self.fragment_id} is already final")
        if fragment is not None:
            self.current = fragment
        self.is_done = True
        await self.channel.emit(UIEvent(
            fragment_id=self.fragment_id, state="final", fragment=self.current
        ))


class UIChannel:
    """Collects fragment events for one action and forwards them to a listener."""

    def __init__(self, listener: Optional[EventListener] = None):
        self.listener = listener
        self.events: List[UIEvent] = []
        self._fragments: Dict[str, StreamableFragment] = {}

    async def emit(self, event: UIEvent):
        self.events.append(event)
        if self.listener is not None:
            await self.listener(event)

    async def open(self, initial: UIFragment) -> StreamableFragment:
        """Start a new fragment in the pending state."""
        fragment_id = uuid.uuid4().hex[:12]
        handle = StreamableFragment(self, fragment_id, initial)
        self._fragments[fragment_id] = handle
        await self.emit(UIEvent(fragment_id=fragment_id, state="pending", fragment=initial))
        return handle

    async def publish(self, fragment: UIFragment) -> StreamableFragment:
        """Emit a fragment that is final straight away."""
        handle = await self.open(fragment)
        await handle.done()
        return handle

    def final_fragments(self) -> List[UIFragment]:
        """Latest content of every fragment, in the order they were opened."""
        return [handle.current for handle in self._fragments.values()]

    def unfinished(self) -> List[str]:
        return [fid for fid, handle in self._fragments.items() if not handle.is_done]
