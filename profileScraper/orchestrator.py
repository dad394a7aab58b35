import asyncio
import logging
from typing import Awaitable, List, Optional, TypeVar

from .auth import Authenticator
from .driver import BrowserSessionHandle, SessionLauncher
from .errors import AuthenticationError, AuthErrorKind, ExtractionError
from .extractors import (
    extract_about,
    extract_education,
    extract_experience,
    extract_identity,
    extract_posts,
)
from .models import Credentials, ProfileResult, TargetReference
from .verification import VerificationSignal

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Profiles with this many posts or fewer get the full profile read as well.
FULL_EXTRACTION_POST_THRESHOLD = 2


class ProfileOrchestrator:
    """Own one authenticated browser session and the result it produces.

    Build it with `open()`. Every step runs under the same wall-clock
    ceiling that started when `open()` was called; running past it raises
    `AuthenticationError(SessionTimeout)` from whichever step was active.
    `close()` must be awaited exactly once afterwards, on every path; extra
    calls are no-ops.

    Example:
        orchestrator = await ProfileOrchestrator.open(credentials, target, launcher, signal)
        try:
            profile = await orchestrator.run()
        finally:
            await orchestrator.close()
    """

    def __init__(
        self,
        session: BrowserSessionHandle,
        launcher: SessionLauncher,
        target: TargetReference,
        deadline: float,
        settle_delay: float = 2.0,
    ):
        self._session = session
        self._launcher = launcher
        self._deadline = deadline
        self._closed = False
        self.target = target
        self.settle_delay = settle_delay
        self.profile = ProfileResult()
        self.errors: List[ExtractionError] = []
        self.full_extraction_ran = False
        self.auth_history: List[str] = []

    @classmethod
    async def open(
        cls,
        credentials: Credentials,
        target: TargetReference,
        launcher: SessionLauncher,
        signal: VerificationSignal,
        session_timeout: float = 180.0,
        verification_timeout: Optional[float] = 120.0,
        settle_delay: float = 2.0,
        revert_to_headless: bool = True,
    ) -> "ProfileOrchestrator":
        """Authenticate and return an orchestrator ready to extract.

        Raises:
            AuthenticationError: login failed, verification was not
                completed, or the session ceiling ran out. No browser is
                left running and the launcher's profile is disposed.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + session_timeout
        authenticator = Authenticator(
            credentials,
            launcher,
            signal,
            verification_timeout=verification_timeout,
            settle_delay=settle_delay,
        )

        session = None
        try:
            session = await _bounded(authenticator.authenticate(), deadline)
            if authenticator.escalated and revert_to_headless and not session.headless:
                logger.info("Switching back to headless browser for extraction")
                await session.close()
                session = None
                session = await _bounded(launcher.launch(headless=True), deadline)
        except BaseException:
            if session is not None:
                await session.close()
            launcher.dispose()
            raise

        orchestrator = cls(session, launcher, target, deadline, settle_delay=settle_delay)
        orchestrator.auth_history = [state.value for state in authenticator.history]
        return orchestrator

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def headless(self) -> bool:
        return self._session.headless

    def needs_full_extraction(self) -> bool:
        return len(self.profile.posts) <= FULL_EXTRACTION_POST_THRESHOLD

    async def _step(self, fn):
        if self._closed:
            raise RuntimeError("orchestrator is closed")
        try:
            return await _bounded(fn(self._session.driver, self.target, self.settle_delay), self._deadline)
        except ExtractionError as e:
            logger.warning(f"error while getting {e.section.value}: {e}")
            self.errors.append(e)
            raise

    async def extract_posts(self) -> Optional[ExtractionError]:
        """Read recent posts. Returns the step's error instead of raising it."""
        try:
            self.profile.posts = await self._step(extract_posts)
        except ExtractionError as e:
            return e
        return None

    async def extract_about(self) -> Optional[ExtractionError]:
        try:
            self.profile.about = await self._step(extract_about)
        except ExtractionError as e:
            return e
        return None

    async def extract_full(self) -> Optional[ExtractionError]:
        """Read identity, experience and education, in that order.

        A failing step does not stop the next one. Returns the first error
        seen, or None; all of them are also kept in `errors`.
        """
        self.full_extraction_ran = True
        first = None

        try:
            self.profile.name, self.profile.location = await self._step(extract_identity)
        except ExtractionError as e:
            first = first or e

        try:
            self.profile.experience = await self._step(extract_experience)
        except ExtractionError as e:
            first = first or e

        try:
            self.profile.education = await self._step(extract_education)
        except ExtractionError as e:
            first = first or e

        return first

    async def run(self) -> ProfileResult:
        """Posts first, then the full profile when there are few posts."""
        await self.extract_posts()
        logger.info(f"Found {len(self.profile.posts)} posts")
        if self.needs_full_extraction():
            await self.extract_full()
        return self.profile.snapshot()

    async def close(self) -> None:
        """Release the browser and its profile directory."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._session.close()
        finally:
            self._launcher.dispose()
        logger.info("Browser session released")

    async def __aenter__(self) -> "ProfileOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


async def _bounded(aw: Awaitable[T], deadline: float) -> T:
    remaining = deadline - asyncio.get_running_loop().time()
    if remaining <= 0:
        if asyncio.iscoroutine(aw):
            aw.close()
        raise AuthenticationError(AuthErrorKind.SESSION_TIMEOUT, "session time limit exceeded")
    try:
        return await asyncio.wait_for(aw, timeout=remaining)
    except asyncio.TimeoutError:
        raise AuthenticationError(
            AuthErrorKind.SESSION_TIMEOUT, "session time limit exceeded"
        ) from None
