"""Login state machine.

    Idle -> Authenticating -> Authenticated
                           -> ChallengePresented -> AwaitingManualResolution -> Authenticated

Any non-terminal state can fall into Failed. A challenge met in a headless
browser cannot be solved there, so the whole session is thrown away and the
login is repeated in a visible browser before a human is asked to help.
"""
import asyncio
import logging
from enum import Enum
from typing import List, Optional

from .driver import BrowserSessionHandle, SessionLauncher
from .errors import AuthenticationError, AuthErrorKind, BrowserError
from .models import Credentials
from .verification import VerificationSignal

logger = logging.getLogger(__name__)

LOGIN_URL = "https://www.linkedin.com/login"
CHALLENGE_PATH = "checkpoint/challenge"

USERNAME_INPUT = 'input[name="session_key"]'
PASSWORD_INPUT = 'input[name="session_password"]'
SUBMIT_BUTTON = 'button[type="submit"]'


class AuthState(str, Enum):
    IDLE = "Idle"
    AUTHENTICATING = "Authenticating"
    CHALLENGE_PRESENTED = "ChallengePresented"
    AWAITING_MANUAL_RESOLUTION = "AwaitingManualResolution"
    AUTHENTICATED = "Authenticated"
    FAILED = "Failed"


_TERMINAL = {AuthState.AUTHENTICATED, AuthState.FAILED}


def is_challenge(address: str) -> bool:
    return CHALLENGE_PATH in address


class Authenticator:
    """Drive one login attempt to Authenticated or Failed.

    Args:
        credentials: identifier/secret to submit.
        launcher: starts headless or visible sessions on a shared profile.
        signal: resolves when a human has dealt with the challenge.
        verification_timeout: seconds to wait on `signal` before giving up.
        settle_delay: seconds to let the page redirect after submitting.
    """

    def __init__(
        self,
        credentials: Credentials,
        launcher: SessionLauncher,
        signal: VerificationSignal,
        verification_timeout: Optional[float] = 120.0,
        settle_delay: float = 1.0,
    ):
        self.credentials = credentials
        self.launcher = launcher
        self.signal = signal
        self.verification_timeout = verification_timeout
        self.settle_delay = settle_delay

        self.state = AuthState.IDLE
        self.history: List[AuthState] = [AuthState.IDLE]
        self.escalated = False
        self.error: Optional[AuthenticationError] = None

    def _transition(self, state: AuthState) -> None:
        if self.state in _TERMINAL:
            raise RuntimeError(f"cannot leave terminal state {self.state.value}")
        logger.debug(f"Auth state {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def _fail(self, kind: AuthErrorKind, message: str) -> AuthenticationError:
        self.error = AuthenticationError(kind, message)
        if self.state not in _TERMINAL:
            self._transition(AuthState.FAILED)
        return self.error

    async def authenticate(self) -> BrowserSessionHandle:
        """Log in and return the live, authenticated session.

        On failure every session this call started has been closed before
        `AuthenticationError` is raised. Cancellation (the orchestrator's
        wall-clock ceiling) also closes the live session and marks the
        machine Failed.
        """
        if self.state is not AuthState.IDLE:
            raise RuntimeError("authenticate() can only run once")

        self._transition(AuthState.AUTHENTICATING)
        session = None
        try:
            session = await self._launch(headless=True)
            address = await self._submit(session)
            if not is_challenge(address):
                self._transition(AuthState.AUTHENTICATED)
                logger.info("Logged in successfully")
                return session

            self._transition(AuthState.CHALLENGE_PRESENTED)
            logger.info("Verification challenge in headless browser, restarting visible")
            self.escalated = True
            await session.close()
            session = None
            session = await self._launch(headless=False)
            address = await self._submit(session)

            self._transition(AuthState.AWAITING_MANUAL_RESOLUTION)
            if is_challenge(address):
                address = await self._await_resolution(session)
            if is_challenge(address):
                raise self._fail(
                    AuthErrorKind.VERIFICATION_NOT_COMPLETED,
                    "verification was not completed successfully",
                )

            self._transition(AuthState.AUTHENTICATED)
            logger.info("Logged in successfully")
            return session
        except AuthenticationError:
            await self._discard(session)
            raise
        except BaseException:
            if self.state not in _TERMINAL:
                self._transition(AuthState.FAILED)
            await self._discard(session)
            raise

    async def _launch(self, headless: bool) -> BrowserSessionHandle:
        try:
            return await self.launcher.launch(headless=headless)
        except BrowserError as e:
            raise self._fail(AuthErrorKind.LOGIN_SUBMISSION_FAILED, str(e)) from e

    async def _submit(self, session: BrowserSessionHandle) -> str:
        logger.info("Logging user in...")
        driver = session.driver
        try:
            await driver.navigate(LOGIN_URL)
            await driver.wait_for(USERNAME_INPUT)
            await driver.fill(USERNAME_INPUT, self.credentials.identifier)
            await driver.fill(PASSWORD_INPUT, self.credentials.secret.get_secret_value())
            await driver.click(SUBMIT_BUTTON)
            if self.settle_delay:
                await asyncio.sleep(self.settle_delay)
            return await driver.current_address()
        except BrowserError as e:
            raise self._fail(AuthErrorKind.LOGIN_SUBMISSION_FAILED, str(e)) from e

    async def _await_resolution(self, session: BrowserSessionHandle) -> str:
        logger.warning("Security verification required, waiting for manual resolution")
        try:
            await asyncio.wait_for(self.signal.wait(), timeout=self.verification_timeout)
        except asyncio.TimeoutError:
            raise self._fail(
                AuthErrorKind.VERIFICATION_NOT_COMPLETED,
                f"no verification signal within {self.verification_timeout}s",
            ) from None
        try:
            return await session.driver.current_address()
        except BrowserError as e:
            raise self._fail(AuthErrorKind.VERIFICATION_NOT_COMPLETED, str(e)) from e

    @staticmethod
    async def _discard(session: Optional[BrowserSessionHandle]) -> None:
        if session is not None:
            await session.close()
