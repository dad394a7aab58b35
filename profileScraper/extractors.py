"""Profile section extractors.

Each step navigates the shared page to one address, reads one structured
query, and maps the records onto the result model. Steps never look at each
other's output.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .driver import BrowserDriver, FieldSpec, QuerySpec
from .errors import BrowserError, ExtractionError, Section
from .models import Education, Experience, Post, TargetReference

logger = logging.getLogger(__name__)

MAX_POSTS = 5
REPOST_MARKER = "reposted this"

PROFILE_ENTITY = 'div[data-view-name="profile-component-entity"]'


@dataclass(frozen=True)
class ExtractionStep:
    section: Section
    path: str
    query: QuerySpec
    ready_selector: Optional[str] = "main"


POSTS_STEP = ExtractionStep(
    section=Section.POSTS,
    path="recent-activity/all",
    ready_selector=None,
    query=QuerySpec(
        item_selector=".feed-shared-update-v2",
        fields=(
            FieldSpec("header", (".update-components-header__text-view",)),
            FieldSpec("title", (
                '.feed-shared-update-v2__description-wrapper .break-words span[dir="ltr"]',
            )),
            FieldSpec("content", (
                ".feed-shared-update-v2__description-wrapper .feed-shared-inline-show-more-text",
            )),
        ),
    ),
)

IDENTITY_STEP = ExtractionStep(
    section=Section.IDENTITY,
    path="",
    query=QuerySpec(
        item_selector="main",
        fields=(
            FieldSpec("name", ("h1.inline.t-24.v-align-middle.break-words", "h1")),
            FieldSpec("location", (".text-body-small.inline.t-black--light.break-words",)),
        ),
    ),
)

ABOUT_STEP = ExtractionStep(
    section=Section.ABOUT,
    path="",
    query=QuerySpec(
        item_selector="main",
        fields=(
            FieldSpec("about", (
                '[data-testid="expandable-text-box"]',
                'div[class*="display-flex full-width"] span[aria-hidden="true"]',
                ".inline-show-more-text--is-collapsed",
            )),
        ),
    ),
)

_DURATION = FieldSpec("duration", ('span.t-14.t-normal.t-black--light span[aria-hidden="true"]',))

EXPERIENCE_STEP = ExtractionStep(
    section=Section.EXPERIENCE,
    path="details/experience",
    query=QuerySpec(
        item_selector=".pvs-list__paged-list-item",
        scope_selector=PROFILE_ENTITY,
        fields=(
            FieldSpec("title", (
                'div.display-flex.align-items-center.mr1.t-bold span[aria-hidden="true"]',
                "div.display-flex.align-items-center.mr1.t-bold span.visually-hidden",
            )),
            FieldSpec("company", ('span.t-14.t-normal span[aria-hidden="true"]',)),
            _DURATION,
        ),
    ),
)

EDUCATION_STEP = ExtractionStep(
    section=Section.EDUCATION,
    path="details/education",
    query=QuerySpec(
        item_selector=".pvs-list__paged-list-item",
        scope_selector=PROFILE_ENTITY,
        fields=(
            FieldSpec("institute", (
                'div.display-flex.align-items-center.mr1.hoverable-link-text.t-bold span[aria-hidden="true"]',
                'div.display-flex.align-items-center.mr1.t-bold span[aria-hidden="true"]',
            )),
            FieldSpec("major", ('span.t-14.t-normal span[aria-hidden="true"]',)),
            _DURATION,
        ),
    ),
)


def _clean(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


async def run_query(driver: BrowserDriver, query: QuerySpec) -> List[Dict[str, str]]:
    """Evaluate `query` and give every record every field, defaulting to ""."""
    raw = await driver.extract_structured(query)
    records = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        records.append({name: _clean(item.get(name)) for name in query.field_names})
    return records


async def _collect(
    driver: BrowserDriver,
    target: TargetReference,
    step: ExtractionStep,
    settle_delay: float,
) -> List[Dict[str, str]]:
    address = target.section(step.path)
    try:
        await driver.navigate(address)
        if settle_delay:
            await asyncio.sleep(settle_delay)
        if step.ready_selector:
            await driver.wait_for(step.ready_selector)
    except BrowserError as e:
        raise ExtractionError(step.section, f"navigation failed: {e}") from e

    try:
        return await run_query(driver, step.query)
    except BrowserError as e:
        raise ExtractionError(step.section, f"evaluation failed: {e}") from e


def select_posts(records: List[Dict[str, str]], limit: int = MAX_POSTS) -> List[Post]:
    """Keep original posts only, in rendered order, at most `limit` of them.

    An item is a repost when its header carries the repost marker; an item
    with neither a title nor content has nothing to say and is dropped too.
    """
    posts = []
    for record in records:
        if REPOST_MARKER in record.get("header", ""):
            continue
        content = record.get("content") or record.get("title", "")
        if not content:
            continue
        posts.append(Post(content=content))
        if len(posts) == limit:
            break
    return posts


async def extract_posts(driver: BrowserDriver, target: TargetReference, settle_delay: float = 2.0) -> List[Post]:
    logger.info("Getting latest posts")
    records = await _collect(driver, target, POSTS_STEP, settle_delay)
    return select_posts(records)


async def extract_identity(
    driver: BrowserDriver, target: TargetReference, settle_delay: float = 2.0
) -> Tuple[str, str]:
    """Return (name, location); either may be empty."""
    logger.info("Getting name and location")
    records = await _collect(driver, target, IDENTITY_STEP, settle_delay)
    if not records:
        return "", ""
    return records[0]["name"], records[0]["location"]


async def extract_about(driver: BrowserDriver, target: TargetReference, settle_delay: float = 2.0) -> str:
    logger.info("Getting about")
    records = await _collect(driver, target, ABOUT_STEP, settle_delay)
    return records[0]["about"] if records else ""


async def extract_experience(
    driver: BrowserDriver, target: TargetReference, settle_delay: float = 2.0
) -> List[Experience]:
    logger.info("Getting experience")
    records = await _collect(driver, target, EXPERIENCE_STEP, settle_delay)
    return [Experience(**record) for record in records]


async def extract_education(
    driver: BrowserDriver, target: TargetReference, settle_delay: float = 2.0
) -> List[Education]:
    logger.info("Getting education")
    records = await _collect(driver, target, EDUCATION_STEP, settle_delay)
    return [Education(**record) for record in records]
