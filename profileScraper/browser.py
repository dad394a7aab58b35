"""Playwright implementation of the browser capability."""
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from playwright.async_api import BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from .driver import QuerySpec
from .errors import BrowserError

logger = logging.getLogger(__name__)

BROWSER_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-infobars",
    "--disable-dev-shm-usage",
]

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

VIEWPORT = {"width": 1920, "height": 1080}

# Runs inside the page. Mirrors FieldSpec/QuerySpec: first non-empty text
# across each field's selectors, "" when nothing matches.
_EXTRACT_JS = """
(query) => {
    const textOf = (root, selectors) => {
        for (const sel of selectors) {
            let nodes = [];
            try {
                nodes = root.querySelectorAll(sel);
            } catch (err) {
                continue;
            }
            for (const node of nodes) {
                const text = (node.textContent || '').trim();
                if (text) return text;
            }
        }
        return '';
    };

    return Array.from(document.querySelectorAll(query.item)).map(el => {
        const root = query.scope ? el.querySelector(query.scope) : el;
        if (!root) return null;
        const record = {};
        for (const field of query.fields) {
            record[field.name] = textOf(root, field.selectors);
        }
        return record;
    }).filter(item => item !== null);
}
"""


class PlaywrightDriver:
    """`BrowserDriver` over a single Playwright page."""

    def __init__(self, page: Page):
        self.page = page

    async def navigate(self, address: str) -> None:
        try:
            await self.page.goto(address, wait_until="domcontentloaded")
        except PlaywrightError as e:
            raise BrowserError(f"navigation to {address} failed: {e}") from e

    async def wait_for(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        try:
            await self.page.wait_for_selector(selector, state="visible", timeout=timeout_ms)
        except PlaywrightError as e:
            raise BrowserError(f"waiting for {selector!r} failed: {e}") from e

    async def fill(self, selector: str, value: str) -> None:
        try:
            await self.page.fill(selector, value)
        except PlaywrightError as e:
            raise BrowserError(f"filling {selector!r} failed: {e}") from e

    async def click(self, selector: str) -> None:
        try:
            await self.page.click(selector)
            await self.page.wait_for_load_state("load")
        except PlaywrightError as e:
            raise BrowserError(f"clicking {selector!r} failed: {e}") from e

    async def current_address(self) -> str:
        return self.page.url

    async def extract_structured(self, query: QuerySpec) -> List[Dict[str, Any]]:
        try:
            records = await self.page.evaluate(_EXTRACT_JS, query.to_payload())
        except PlaywrightError as e:
            raise BrowserError(f"evaluating {query.item_selector!r} failed: {e}") from e
        return records if isinstance(records, list) else []


class BrowserSession:
    """Chromium running on a persistent profile directory.

    Cookies and local storage live in ``user_data_dir``, so a new session
    started on the same directory is already logged in.
    """

    def __init__(
        self,
        user_data_dir: str,
        headless: bool = True,
        navigation_timeout_ms: int = 30_000,
    ):
        self.user_data_dir = user_data_dir
        self.headless = headless
        self.navigation_timeout_ms = navigation_timeout_ms

        self._playwright: Optional[Playwright] = None
        self._context: Optional[BrowserContext] = None
        self._driver: Optional[PlaywrightDriver] = None

    async def start(self) -> None:
        try:
            self._playwright = await async_playwright().start()
            self._context = await self._playwright.chromium.launch_persistent_context(
                self.user_data_dir,
                headless=self.headless,
                args=BROWSER_ARGS,
                user_agent=USER_AGENT,
                viewport=VIEWPORT,
                locale="en-US",
            )
            page = self._context.pages[0] if self._context.pages else await self._context.new_page()
            page.set_default_timeout(self.navigation_timeout_ms)
            self._driver = PlaywrightDriver(page)
            logger.info(f"Browser launched (headless={self.headless})")
        except PlaywrightError as e:
            await self.close()
            raise BrowserError(f"Failed to start browser: {e}") from e
        except BaseException:
            await self.close()
            raise

    @property
    def driver(self) -> PlaywrightDriver:
        if not self._driver:
            raise RuntimeError("Browser not started. Call start() first.")
        return self._driver

    async def close(self) -> None:
        """Close the context and stop Playwright. Safe to call twice."""
        try:
            if self._context:
                await self._context.close()
            if self._playwright:
                await self._playwright.stop()
        except PlaywrightError as e:
            logger.error(f"Error closing browser: {e}")
        finally:
            self._context = None
            self._playwright = None
            self._driver = None


class PersistentProfileLauncher:
    """Launch sessions for one orchestrator on a private profile directory.

    Every orchestrator gets its own launcher, so profiles (and the login
    they carry) are never shared between requests.
    """

    def __init__(
        self,
        data_root: Optional[str] = None,
        navigation_timeout_ms: int = 30_000,
    ):
        if data_root:
            Path(data_root).mkdir(parents=True, exist_ok=True)
        self.user_data_dir = tempfile.mkdtemp(prefix="profile-session-", dir=data_root)
        self.navigation_timeout_ms = navigation_timeout_ms

    async def launch(self, headless: bool) -> BrowserSession:
        session = BrowserSession(
            self.user_data_dir,
            headless=headless,
            navigation_timeout_ms=self.navigation_timeout_ms,
        )
        await session.start()
        return session

    def dispose(self) -> None:
        shutil.rmtree(self.user_data_dir, ignore_errors=True)
