"""Capability interface between the scraper core and a live browser.

The authentication state machine and the extraction pipeline only ever talk
to a `BrowserDriver`. Production code plugs in the Playwright implementation
from `browser.py`; tests plug in an in-memory page fixture.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple


@dataclass(frozen=True)
class FieldSpec:
    """One output field of a structured query.

    `selectors` are tried in order relative to the item (or its scope
    element); the first one yielding non-empty trimmed text wins. A field
    with no match resolves to an empty string.
    """
    name: str
    selectors: Tuple[str, ...]


@dataclass(frozen=True)
class QuerySpec:
    """Describe a list of records to read from the current page.

    Every element matching `item_selector` becomes one record, in DOM order.
    When `scope_selector` is set, fields are read from the first descendant
    matching it and items without such a descendant are skipped.
    """
    item_selector: str
    fields: Tuple[FieldSpec, ...]
    scope_selector: Optional[str] = None

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "item": self.item_selector,
            "scope": self.scope_selector,
            "fields": [{"name": f.name, "selectors": list(f.selectors)} for f in self.fields],
        }


class BrowserDriver(Protocol):
    """Primitives the scraper needs from a browser page.

    Implementations raise `errors.BrowserError` when a primitive fails.
    """

    async def navigate(self, address: str) -> None: ...

    async def wait_for(self, selector: str, timeout_ms: Optional[int] = None) -> None: ...

    async def fill(self, selector: str, value: str) -> None: ...

    async def click(self, selector: str) -> None: ...

    async def current_address(self) -> str: ...

    async def extract_structured(self, query: QuerySpec) -> List[Dict[str, Any]]: ...


class BrowserSessionHandle(Protocol):
    """A live browser whose lifetime is owned by exactly one orchestrator."""

    headless: bool

    @property
    def driver(self) -> BrowserDriver: ...

    async def close(self) -> None: ...


class SessionLauncher(Protocol):
    """Start browser sessions that share one persistent profile.

    Sessions launched by the same launcher see each other's cookies, which
    is what lets an interactive session be swapped for a headless one after
    login without logging in again.
    """

    async def launch(self, headless: bool) -> BrowserSessionHandle: ...

    def dispose(self) -> None: ...

