import asyncio
import os

import pytest
from playwright.async_api import Error as PlaywrightError

from profileScraper import browser
from profileScraper.browser import BrowserSession, PersistentProfileLauncher, PlaywrightDriver
from profileScraper.errors import BrowserError
from profileScraper.extractors import EXPERIENCE_STEP


class StubPage:
    url = "https://www.linkedin.com/feed/"

    def __init__(self, fail=False, result=None):
        self.fail = fail
        self.result = result
        self.evaluated = []

    async def goto(self, address, wait_until=None):
        if self.fail:
            raise PlaywrightError("net::ERR_NAME_NOT_RESOLVED")

    async def evaluate(self, script, payload):
        self.evaluated.append(payload)
        if self.fail:
            raise PlaywrightError("Execution context was destroyed")
        return self.result


@pytest.mark.asyncio
async def test_driver_wraps_playwright_errors():
    driver = PlaywrightDriver(StubPage(fail=True))

    with pytest.raises(BrowserError):
        await driver.navigate("https://www.linkedin.com/in/jane-doe")
    with pytest.raises(BrowserError):
        await driver.extract_structured(EXPERIENCE_STEP.query)


@pytest.mark.asyncio
async def test_driver_sends_query_payload():
    page = StubPage(result=[{"title": "Engineer"}])
    driver = PlaywrightDriver(page)

    records = await driver.extract_structured(EXPERIENCE_STEP.query)

    assert records == [{"title": "Engineer"}]
    payload = page.evaluated[0]
    assert payload["item"] == ".pvs-list__paged-list-item"
    assert payload["scope"] == 'div[data-view-name="profile-component-entity"]'
    assert [f["name"] for f in payload["fields"]] == ["title", "company", "duration"]
    assert await driver.current_address() == "https://www.linkedin.com/feed/"


@pytest.mark.asyncio
async def test_driver_ignores_non_list_results():
    assert await PlaywrightDriver(StubPage(result=None)).extract_structured(EXPERIENCE_STEP.query) == []


def test_launchers_get_private_profiles(tmp_path):
    first = PersistentProfileLauncher(data_root=str(tmp_path / "profiles"))
    second = PersistentProfileLauncher(data_root=str(tmp_path / "profiles"))

    assert first.user_data_dir != second.user_data_dir
    assert os.path.isdir(first.user_data_dir)

    first.dispose()
    first.dispose()

    assert not os.path.exists(first.user_data_dir)
    assert os.path.isdir(second.user_data_dir)
    second.dispose()


class HangingChromium:
    async def launch_persistent_context(self, user_data_dir, **kwargs):
        await asyncio.Event().wait()


class StubPlaywright:
    def __init__(self):
        self.chromium = HangingChromium()
        self.stopped = False

    async def stop(self):
        self.stopped = True


@pytest.mark.asyncio
async def test_cancelled_start_stops_playwright(monkeypatch, tmp_path):
    playwright = StubPlaywright()

    class Starter:
        async def start(self):
            return playwright

    monkeypatch.setattr(browser, "async_playwright", lambda: Starter())
    session = BrowserSession(str(tmp_path), headless=True)

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(session.start(), timeout=0.05)

    assert playwright.stopped
    with pytest.raises(RuntimeError):
        session.driver
