"""Tests for ProfileOrchestrator."""
import pytest

from connectMessage.helper import used_parameters
from profileScraper.errors import AuthenticationError, AuthErrorKind, Section
from profileScraper.orchestrator import ProfileOrchestrator
from tests.fakes import (
    CHALLENGE_URL,
    EDUCATION_URL,
    EXPERIENCE_URL,
    FEED_URL,
    POSTS_URL,
    TARGET,
    FakeLauncher,
    FakeSignal,
    profile_site,
)

EXPERIENCE = [{"title": "Data Engineer", "company": "Acme", "duration": "2020 - Present"}]
EDUCATION = [{"institute": "TU Berlin", "major": "Computer Science", "duration": "2014 - 2018"}]


async def _open(credentials, target, launcher, signal=None, **kwargs):
    kwargs.setdefault("settle_delay", 0)
    kwargs.setdefault("verification_timeout", 1.0)
    return await ProfileOrchestrator.open(credentials, target, launcher, signal or FakeSignal(), **kwargs)


@pytest.mark.asyncio
@pytest.mark.parametrize("post_count", [0, 1, 2])
async def test_few_posts_trigger_full_extraction(credentials, target, post_count):
    launcher = FakeLauncher(profile_site(posts=post_count, experience=EXPERIENCE, education=EDUCATION))
    orchestrator = await _open(credentials, target, launcher)

    profile = await orchestrator.run()
    await orchestrator.close()

    assert orchestrator.full_extraction_ran
    assert len(profile.posts) == post_count
    assert profile.name == "Jane Doe"
    assert profile.experience[0].title == "Data Engineer"
    assert profile.education[0].institute == "TU Berlin"
    assert launcher.site.visited[-4:] == [POSTS_URL, TARGET, EXPERIENCE_URL, EDUCATION_URL]


@pytest.mark.asyncio
@pytest.mark.parametrize("post_count", [3, 4, 5, 8])
async def test_many_posts_skip_full_extraction(credentials, target, post_count):
    launcher = FakeLauncher(profile_site(posts=post_count, experience=EXPERIENCE, education=EDUCATION))
    orchestrator = await _open(credentials, target, launcher)

    profile = await orchestrator.run()
    await orchestrator.close()

    assert not orchestrator.full_extraction_ran
    assert len(profile.posts) == min(post_count, 5)
    assert profile.name == ""
    assert profile.experience == []
    assert EXPERIENCE_URL not in launcher.site.visited


@pytest.mark.asyncio
async def test_single_post_profile_reports_used_parameters(credentials, target):
    launcher = FakeLauncher(profile_site(posts=1, experience=EXPERIENCE, location=""))
    orchestrator = await _open(credentials, target, launcher)

    profile = await orchestrator.run()
    await orchestrator.close()

    assert len(profile.experience) == 1
    assert used_parameters(profile) == ["Posts", "Experience", "Name"]


@pytest.mark.asyncio
async def test_open_without_challenge_uses_one_session(credentials, target):
    launcher = FakeLauncher(profile_site(login_results=[FEED_URL]))
    orchestrator = await _open(credentials, target, launcher)

    assert orchestrator.auth_history == ["Idle", "Authenticating", "Authenticated"]
    assert len(launcher.sessions) == 1
    assert orchestrator.headless

    await orchestrator.close()


@pytest.mark.asyncio
async def test_challenge_switches_back_to_headless(credentials, target):
    launcher = FakeLauncher(profile_site(posts=3, login_results=[CHALLENGE_URL, CHALLENGE_URL]))

    def solve():
        launcher.sessions[-1].driver.address = FEED_URL

    orchestrator = await _open(credentials, target, launcher, FakeSignal(on_wait=solve))

    assert [s.headless for s in launcher.sessions] == [True, False, True]
    assert len(launcher.live_sessions) == 1
    assert orchestrator.headless
    assert "AwaitingManualResolution" in orchestrator.auth_history

    profile = await orchestrator.run()
    await orchestrator.close()
    assert len(profile.posts) == 3


@pytest.mark.asyncio
async def test_challenge_can_keep_visible_session(credentials, target):
    launcher = FakeLauncher(profile_site(login_results=[CHALLENGE_URL, FEED_URL]))
    orchestrator = await _open(credentials, target, launcher, revert_to_headless=False)

    assert [s.headless for s in launcher.sessions] == [True, False]
    assert not orchestrator.headless

    await orchestrator.close()


@pytest.mark.asyncio
async def test_failed_verification_releases_everything(credentials, target):
    launcher = FakeLauncher(profile_site(login_results=[CHALLENGE_URL, CHALLENGE_URL]))

    with pytest.raises(AuthenticationError) as exc:
        await _open(credentials, target, launcher)

    assert exc.value.kind is AuthErrorKind.VERIFICATION_NOT_COMPLETED
    assert [s.close_calls for s in launcher.sessions] == [1, 1]
    assert launcher.disposed == 1


@pytest.mark.asyncio
async def test_session_timeout_during_verification(credentials, target):
    launcher = FakeLauncher(profile_site(login_results=[CHALLENGE_URL]))

    with pytest.raises(AuthenticationError) as exc:
        await _open(
            credentials, target, launcher, FakeSignal(block=True),
            session_timeout=0.1, verification_timeout=None,
        )

    assert exc.value.kind is AuthErrorKind.SESSION_TIMEOUT
    assert launcher.live_sessions == []
    assert launcher.disposed == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("login_results, hang_from_launch", [
    ([FEED_URL], 0),
    ([CHALLENGE_URL], 1),
    ([CHALLENGE_URL, FEED_URL], 2),
], ids=["headless", "visible", "revert"])
async def test_session_timeout_during_browser_launch(credentials, target, login_results, hang_from_launch):
    launcher = FakeLauncher(profile_site(login_results=login_results), hang_from_launch=hang_from_launch)

    with pytest.raises(AuthenticationError) as exc:
        await _open(credentials, target, launcher, session_timeout=0.1)

    assert exc.value.kind is AuthErrorKind.SESSION_TIMEOUT
    assert len(launcher.sessions) == hang_from_launch
    assert launcher.live_sessions == []
    assert launcher.disposed == 1


@pytest.mark.asyncio
async def test_session_timeout_during_extraction(credentials, target):
    launcher = FakeLauncher(profile_site(posts=1, slow={EXPERIENCE_URL}, slow_delay=1.0))
    orchestrator = await _open(credentials, target, launcher, session_timeout=0.2)

    with pytest.raises(AuthenticationError) as exc:
        await orchestrator.run()
    await orchestrator.close()

    assert exc.value.kind is AuthErrorKind.SESSION_TIMEOUT
    assert launcher.sessions[0].close_calls == 1


@pytest.mark.asyncio
async def test_failed_steps_do_not_block_siblings(credentials, target):
    launcher = FakeLauncher(profile_site(posts=0, education=EDUCATION, broken={TARGET, EXPERIENCE_URL}))
    orchestrator = await _open(credentials, target, launcher)

    await orchestrator.extract_posts()
    first = await orchestrator.extract_full()
    await orchestrator.close()

    assert first.section is Section.IDENTITY
    assert [e.section for e in orchestrator.errors] == [Section.IDENTITY, Section.EXPERIENCE]
    assert orchestrator.profile.name == ""
    assert orchestrator.profile.experience == []
    assert orchestrator.profile.education[0].major == "Computer Science"


@pytest.mark.asyncio
async def test_posts_failure_counts_as_no_posts(credentials, target):
    launcher = FakeLauncher(profile_site(posts=4, experience=EXPERIENCE, broken={POSTS_URL}))
    orchestrator = await _open(credentials, target, launcher)

    profile = await orchestrator.run()
    await orchestrator.close()

    assert profile.posts == []
    assert orchestrator.errors[0].kind == "PostExtractionFailed"
    assert orchestrator.full_extraction_ran


@pytest.mark.asyncio
async def test_close_releases_exactly_once_after_failure(credentials, target):
    launcher = FakeLauncher(profile_site(posts=0, unevaluable={EDUCATION_URL}))
    orchestrator = await _open(credentials, target, launcher)

    await orchestrator.run()
    await orchestrator.close()
    await orchestrator.close()

    assert orchestrator.closed
    assert launcher.sessions[0].close_calls == 1
    assert launcher.disposed == 1


@pytest.mark.asyncio
async def test_context_manager_closes(credentials, target):
    launcher = FakeLauncher(profile_site(posts=1))

    async with await _open(credentials, target, launcher) as orchestrator:
        await orchestrator.extract_about()

    assert orchestrator.closed
    assert launcher.sessions[0].close_calls == 1


@pytest.mark.asyncio
async def test_steps_refuse_closed_orchestrator(credentials, target):
    launcher = FakeLauncher(profile_site())
    orchestrator = await _open(credentials, target, launcher)
    await orchestrator.close()

    with pytest.raises(RuntimeError):
        await orchestrator.extract_posts()


@pytest.mark.asyncio
async def test_run_returns_independent_copy(credentials, target):
    launcher = FakeLauncher(profile_site(posts=1))
    orchestrator = await _open(credentials, target, launcher)

    profile = await orchestrator.run()
    profile.posts.clear()
    await orchestrator.close()

    assert len(orchestrator.profile.posts) == 1
