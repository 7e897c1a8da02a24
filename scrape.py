"""Scraping utilities for chamber of commerce event sites.

This module holds the per-site source table, the candidate locator and a
single public ``all_events()`` function returning canonical events for
every configured chamber, in source order.

Returned records are ``event_parser.ChamberEvent`` instances:
{
    "title": str,
    "chamber": Chamber,
    "date": "YYYY-MM-DD",
    "time": str,
    "location": str,
    "description": str,
    "link": str          # absolute URL, events index when the page has none
}
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from event_parser import (
    Chamber, ChamberEvent, assemble_event, extract_fields, is_date_like,
    is_time_like, resolve_link, text_lines,
)
from fetcher import FetchError, FetchOptions, get_fetcher

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 20


@dataclass(frozen=True)
class ChamberSource:
    """One chamber website and how to read it."""
    chamber: Chamber
    name: str
    url: str
    events_url: str = ""
    render: bool = False  # listing is injected by page scripts
    discover_events_link: bool = False
    selectors: Tuple[str, ...] = ()

    @property
    def origin(self) -> str:
        parsed = urlparse(self.url)
        return f"{parsed.scheme}://{parsed.netloc}"

    @property
    def index_url(self) -> str:
        return self.events_url or self.url


SOURCES: Tuple[ChamberSource, ...] = (
    ChamberSource(
        chamber=Chamber.MONTGOMERY_COUNTY,
        name="Montgomery County Chamber of Commerce",
        url="https://web.mcccmd.com/events",
        render=True,
    ),
    ChamberSource(
        chamber=Chamber.GAITHERSBURG,
        name="Gaithersburg-Germantown Chamber of Commerce",
        url="https://www.ggchamber.org/",
        render=True,
        discover_events_link=True,
    ),
    ChamberSource(
        chamber=Chamber.MARYLAND,
        name="Maryland Chamber of Commerce",
        url="https://www.mdchamber.org/events/",
    ),
)


# ---------------------------------------------------------------------------
# Candidate location
# ---------------------------------------------------------------------------

@dataclass
class Candidate:
    """A page region that probably describes one event."""
    element: Tag
    lines: List[str]

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


Selector = Callable[[BeautifulSoup], List[Tag]]


def css_selector(css: str) -> Tuple[str, Selector]:
    def select(soup: BeautifulSoup) -> List[Tag]:
        return soup.select(css)
    return css, select


# Tried in order; the first selector with any match is used for the page.
CANDIDATE_SELECTORS: List[Tuple[str, Selector]] = [
    css_selector(css) for css in (
        ".event",
        ".event-item",
        ".calendar-event",
        "[data-event]",
        ".event-list-item",
        ".event-card",
        ".event-row",
        'div[class*="event"]',
    )
]

GENERIC_CONTAINERS = "li, tr, article, .card, .item"
EVENT_KEYWORDS = re.compile(
    r"\b(?:events?|mixers?|networking|breakfast|luncheon|expo|workshops?|seminars?"
    r"|meetups?|webinars?|receptions?|ribbon cutting)\b",
    re.IGNORECASE,
)


def generic_scan(soup: BeautifulSoup) -> List[Tag]:
    """Generic containers mentioning a date, a time or event wording, innermost only."""
    matched = [
        el for el in soup.select(GENERIC_CONTAINERS)
        if _looks_like_event(el.get_text(" "))
    ]
    matched_ids = {id(el) for el in matched}
    enclosing = set()
    for el in matched:
        for parent in el.parents:
            if id(parent) in matched_ids:
                enclosing.add(id(parent))
    return [el for el in matched if id(el) not in enclosing]


def _looks_like_event(text: str) -> bool:
    return is_date_like(text) or is_time_like(text) or bool(EVENT_KEYWORDS.search(text))


def locate_candidates(soup: BeautifulSoup, selectors: Sequence[str] = ()) -> List[Candidate]:
    """Return up to MAX_CANDIDATES probable event regions of a document."""
    chain = [css_selector(css) for css in selectors] + CANDIDATE_SELECTORS

    elements: List[Tag] = []
    for label, select in chain:
        elements = select(soup)
        if elements:
            logger.debug("Found %d elements using selector: %s", len(elements), label)
            break
    else:
        elements = generic_scan(soup)
        logger.debug("No event selector matched; generic scan kept %d elements", len(elements))

    return [
        Candidate(element=el, lines=text_lines(el))
        for el in elements[:MAX_CANDIDATES]
    ]


# ---------------------------------------------------------------------------
# Per-source scraping
# ---------------------------------------------------------------------------

def find_events_link(soup: BeautifulSoup, source: ChamberSource) -> Optional[str]:
    """First link that looks like it leads to the site's events listing."""
    anchor = soup.select_one('a[href*="event"], a[href*="calendar"]')
    if not anchor:
        return None
    href = anchor.get("href", "")
    if "event" not in href.lower():
        return None
    return resolve_link(href, source.origin, source.index_url)


def fetch_source_document(source: ChamberSource, fetcher) -> str:
    """Fetch the page holding the source's listing."""
    html = fetcher.fetch(source.url)
    if not source.discover_events_link:
        return html

    events_link = find_events_link(BeautifulSoup(html, "html.parser"), source)
    if events_link and events_link != source.url:
        logger.info("Navigating to events page: %s", events_link)
        try:
            html = fetcher.fetch(events_link)
        except FetchError as e:
            logger.info("Could not fetch events page, using %s instead: %s", source.url, e)
    return html


def parse_events(html: str, source: ChamberSource) -> List[ChamberEvent]:
    """Run locate -> extract -> assemble over one fetched document."""
    soup = BeautifulSoup(html, "html.parser")
    events = []
    for candidate in locate_candidates(soup, source.selectors):
        fields = extract_fields(candidate.element, source.origin, source.index_url, candidate.lines)
        event = assemble_event(fields, source.chamber)
        if event is not None:
            events.append(event)
    return events


def scrape_source(source: ChamberSource, fetcher=None,
                  options: Optional[FetchOptions] = None) -> List[ChamberEvent]:
    """Events from one chamber; an unreachable site yields an empty list."""
    if fetcher is None:
        fetcher = get_fetcher(source.render, options)

    logger.info("Fetching events from %s...", source.name)
    try:
        html = fetch_source_document(source, fetcher)
    except FetchError as e:
        logger.warning("Skipping %s: %s", source.name, e)
        return []

    events = parse_events(html, source)
    logger.info("Found %d events from %s", len(events), source.name)
    return events


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def all_events(sources: Iterable[ChamberSource] = SOURCES,
               options: Optional[FetchOptions] = None,
               fetcher_factory=get_fetcher,
               max_workers: int = 1) -> List[List[ChamberEvent]]:
    """Scrape every source; one result list per source, in source order.

    ``fetcher_factory(render, options)`` builds the fetcher for each source.
    With ``max_workers > 1`` sources are fetched concurrently, but results
    still come back in the order of ``sources``.
    """
    sources = list(sources)

    def run(source: ChamberSource) -> List[ChamberEvent]:
        return scrape_source(source, fetcher_factory(source.render, options))

    if max_workers <= 1 or len(sources) <= 1:
        return [run(source) for source in sources]

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(run, sources))
