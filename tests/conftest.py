"""
Shared pytest fixtures for the chamber events test suite.

Provides event factories and an in-memory document fetcher so no test
touches the network.
"""

from typing import Dict, Union

import pytest

from event_parser import Chamber, ChamberEvent
from fetcher import FetchError
from scrape import ChamberSource


class FakeFetcher:
    """Serves canned HTML by URL; exceptions in the table are raised."""

    def __init__(self, pages: Dict[str, Union[str, Exception]]):
        self.pages = pages
        self.requested = []

    def fetch(self, url: str) -> str:
        self.requested.append(url)
        if url not in self.pages:
            raise FetchError(url, "404 Not Found")
        page = self.pages[url]
        if isinstance(page, Exception):
            raise page
        return page


@pytest.fixture
def create_event():
    """
    Return a function that creates ChamberEvent objects with sensible defaults.

    Example:
        event = create_event(title="Spring Mixer", date="2025-04-01")
    """

    def _create_event(title: str = "Business Networking Breakfast",
                      date: str = "2025-06-15",
                      chamber: Chamber = Chamber.GAITHERSBURG,
                      **kwargs) -> ChamberEvent:
        defaults = {
            "time": "8:00 AM",
            "location": "Gaithersburg Marriott",
            "description": "Join local business leaders for breakfast.",
            "link": "https://www.ggchamber.org/events/breakfast",
        }
        defaults.update(kwargs)
        return ChamberEvent(title=title, chamber=chamber, date=date, **defaults)

    return _create_event


@pytest.fixture
def fake_fetcher_factory():
    """
    Return a fetcher_factory compatible with scrape.all_events that serves
    the given pages for every source.
    """

    def _factory(pages):
        fetcher = FakeFetcher(pages)

        def _get_fetcher(render, options=None):
            return fetcher

        _get_fetcher.fetcher = fetcher
        return _get_fetcher

    return _factory


@pytest.fixture
def fake_fetcher():
    return FakeFetcher


@pytest.fixture
def rockville_source():
    return ChamberSource(
        chamber=Chamber.ROCKVILLE,
        name="Rockville Chamber of Commerce",
        url="https://www.rockvillechamber.org/events",
    )


@pytest.fixture
def bethesda_source():
    return ChamberSource(
        chamber=Chamber.BETHESDA,
        name="Bethesda-Chevy Chase Chamber of Commerce",
        url="https://www.bccchamber.org/calendar/",
        events_url="https://www.bccchamber.org/calendar/",
    )
