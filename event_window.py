"""Date window filtering and ordering of events for display."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from event_parser import Chamber, ChamberEvent

logger = logging.getLogger(__name__)

WINDOWS = ("all", "today", "week", "month")


def _event_date(event: ChamberEvent) -> Optional[date]:
    try:
        return event.event_date
    except ValueError:
        return None


def filter_upcoming(events: Iterable[ChamberEvent], today: Optional[date] = None) -> List[ChamberEvent]:
    """Events dated today or later; unparseable dates are dropped."""
    if today is None:
        today = date.today()

    upcoming = []
    for event in events:
        event_date = _event_date(event)
        if event_date is None:
            logger.warning("Dropping '%s': invalid date %r", event.title, event.date)
            continue
        if event_date >= today:
            upcoming.append(event)
    return upcoming


def sort_by_date(events: Iterable[ChamberEvent]) -> List[ChamberEvent]:
    """Ascending by date; same-day events keep their relative order."""
    return sorted(events, key=lambda ev: ev.date)


def upcoming_events(events: Iterable[ChamberEvent], today: Optional[date] = None) -> List[ChamberEvent]:
    return sort_by_date(filter_upcoming(events, today))


def window_end(today: date, within: str) -> Optional[date]:
    """Last date included by a display window; None means unbounded."""
    if within == "all":
        return None
    if within == "today":
        return today
    if within == "week":
        return today + timedelta(days=7)
    if within == "month":
        return today + relativedelta(months=1)
    raise ValueError(f"Unknown window: {within}")


def select_events(events: Iterable[ChamberEvent], today: Optional[date] = None,
                  chamber: Optional[Chamber] = None, within: str = "all") -> List[ChamberEvent]:
    """Upcoming events narrowed to one chamber and/or a date window."""
    if today is None:
        today = date.today()
    end = window_end(today, within)

    selected = []
    for event in upcoming_events(events, today):
        if chamber is not None and event.chamber is not chamber:
            continue
        if end is not None and event.event_date > end:
            continue
        selected.append(event)
    return selected
