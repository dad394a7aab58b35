"""Out-of-band signals used to wait for a human to solve a login challenge."""
import asyncio
import logging
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class VerificationSignal(Protocol):
    """Resolves once a human reports the challenge as done.

    The authenticator re-checks the page address afterwards, so a signal
    only means "go and look", never "it worked".
    """

    async def wait(self) -> None: ...


class ConsoleSignal:
    """Wait for Enter on the server's terminal."""

    def __init__(self, prompt: str = "\nPress Enter once you've completed the verification..."):
        self.prompt = prompt

    async def wait(self) -> None:
        print("\nSecurity verification required!")
        print("Please complete the verification puzzle in the browser window")
        await asyncio.to_thread(input, self.prompt)


class EventSignal:
    """Signal set programmatically, e.g. from an HTTP endpoint."""

    def __init__(self):
        self._event = asyncio.Event()

    def set(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


class VerificationRegistry:
    """Pending challenges keyed by login identifier.

    Lets one request wait on a challenge while another request (the human
    saying "done") resolves it.
    """

    def __init__(self):
        self._pending: Dict[str, EventSignal] = {}

    def register(self, identifier: str) -> EventSignal:
        signal = EventSignal()
        self._pending[identifier] = signal
        return signal

    def release(self, identifier: str, signal: Optional[EventSignal] = None) -> None:
        current = self._pending.get(identifier)
        if current is not None and (signal is None or current is signal):
            del self._pending[identifier]

    def resolve(self, identifier: str) -> bool:
        signal = self._pending.get(identifier)
        if signal is None:
            return False
        logger.info("Verification acknowledged for pending login")
        signal.set()
        return True

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._pending
