"""Event field extraction and normalisation for chamber listings.

This module turns one candidate page region into a canonical event:
- Canonical record types (``Chamber``, ``ChamberEvent``)
- Best-effort field extraction (title, date, time, location, description, link)
- Date normalisation to ``YYYY-MM-DD`` from ISO, slash and month-name forms
- Record assembly with minimum-validity checks
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, asdict
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import Tag
from dateutil import parser as dtparser

logger = logging.getLogger(__name__)

TITLE_MAX = 200
TITLE_LINE_MAX = 100
TIME_MAX = 40
LOCATION_MAX = 200
DESCRIPTION_MAX = 300
MIN_TITLE_LENGTH = 6


class Chamber(Enum):
    """Known source chambers."""
    GAITHERSBURG = "gaithersburg"
    ROCKVILLE = "rockville"
    BETHESDA = "bethesda"
    SILVER_SPRING = "silver-spring"
    MONTGOMERY_COUNTY = "montgomery-county"
    MARYLAND = "maryland"

    @property
    def display_name(self) -> str:
        return CHAMBER_NAMES[self]


CHAMBER_NAMES = {
    Chamber.GAITHERSBURG: "Gaithersburg-Germantown Chamber of Commerce",
    Chamber.ROCKVILLE: "Rockville Chamber of Commerce",
    Chamber.BETHESDA: "Bethesda-Chevy Chase Chamber of Commerce",
    Chamber.SILVER_SPRING: "Silver Spring Chamber of Commerce",
    Chamber.MONTGOMERY_COUNTY: "Montgomery County Chamber of Commerce",
    Chamber.MARYLAND: "Maryland Chamber of Commerce",
}


@dataclass
class ChamberEvent:
    """Canonical event record as stored in the catalog."""
    title: str
    chamber: Chamber
    date: str  # YYYY-MM-DD
    time: str = ""
    location: str = ""
    description: str = ""
    link: str = ""

    @property
    def key(self) -> Tuple[str, str]:
        """Identity used for duplicate detection."""
        return (self.title.lower(), self.date)

    @property
    def event_date(self) -> date:
        return date.fromisoformat(self.date)

    def to_dict(self) -> Dict[str, str]:
        data = asdict(self)
        data["chamber"] = self.chamber.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChamberEvent":
        """Rebuild a record from its flat catalog form.

        Raises ValueError when the map is not a usable record.
        """
        if not isinstance(data, dict):
            raise ValueError(f"event entry is not a mapping: {data!r}")

        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValueError("event has no title")

        chamber = Chamber(data.get("chamber"))  # ValueError on unknown tag

        event_date = data.get("date")
        if not isinstance(event_date, str):
            raise ValueError(f"event '{title}' has no date")
        if date.fromisoformat(event_date).isoformat() != event_date:
            raise ValueError(f"event '{title}' date is not canonical: {event_date}")

        return cls(
            title=title.strip(),
            chamber=chamber,
            date=event_date,
            time=str(data.get("time") or ""),
            location=str(data.get("location") or ""),
            description=str(data.get("description") or ""),
            link=str(data.get("link") or ""),
        )


@dataclass
class ExtractedFields:
    """Best-effort field values pulled from one candidate; any may be empty."""
    title: str = ""
    date_text: str = ""
    time: str = ""
    location: str = ""
    description: str = ""
    link: str = ""


# ---------------------------------------------------------------------------
# Date normalisation
# ---------------------------------------------------------------------------

_ORDINAL = r"(?:st|nd|rd|th)?"

ISO_DATE = re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b")
SLASH_DATE = re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b")
MONTH_NAME_DATE = re.compile(
    r"\b(January|February|March|April|May|June|July|August|September|October|November|December)"
    r"\s+(\d{1,2})" + _ORDINAL + r",?\s+(\d{4})\b",
    re.IGNORECASE,
)
MONTH_ABBR_DATE = re.compile(
    r"\b(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sept?|Oct|Nov|Dec)\.?"
    r"\s+(\d{1,2})" + _ORDINAL + r",?\s+(\d{4})\b",
    re.IGNORECASE,
)


def _iso_to_date(m: re.Match) -> date:
    year, month, day = m.groups()
    return date(int(year), int(month), int(day))


def _slash_to_date(m: re.Match) -> date:
    month, day, year = m.groups()
    return date(int(year), int(month), int(day))


def _month_name_to_date(m: re.Match) -> date:
    month, day, year = m.groups()
    # dateutil knows full and short month names, including "Sept".
    return dtparser.parse(f"{month} {day} {year}").date()


# Priority order matters: the first pattern that matches decides the date.
DATE_PATTERNS: List[Tuple[re.Pattern, Any]] = [
    (ISO_DATE, _iso_to_date),
    (SLASH_DATE, _slash_to_date),
    (MONTH_NAME_DATE, _month_name_to_date),
    (MONTH_ABBR_DATE, _month_name_to_date),
]


def find_date_text(text: str) -> str:
    """Return the first date-like substring, trying patterns in priority order."""
    if not text:
        return ""
    for pattern, _ in DATE_PATTERNS:
        m = pattern.search(text)
        if m:
            return m.group(0)
    return ""


def normalize_date(text: str) -> Optional[str]:
    """Return ``YYYY-MM-DD`` for free-form date text, or None.

    Accepts strings like:
        '2025-03-15'
        '3/15/2025'
        'March 3, 2025' / 'March 3rd 2025'
        'Sept. 5, 2025'
    """
    if not text or not text.strip():
        return None
    for pattern, to_date in DATE_PATTERNS:
        m = pattern.search(text)
        if not m:
            continue
        try:
            return to_date(m).isoformat()
        except (ValueError, OverflowError) as e:
            logger.debug("Rejected date '%s': %s", m.group(0), e)
            return None
    return None


def is_date_like(text: str) -> bool:
    return bool(find_date_text(text))


# ---------------------------------------------------------------------------
# Field extraction
# ---------------------------------------------------------------------------

def clean_text(text: str) -> str:
    """Collapse all whitespace runs to single spaces."""
    return re.sub(r"\s+", " ", text or "").strip()


def text_lines(element: Tag) -> List[str]:
    """Non-empty text lines of an element, one per rendered text node."""
    raw = element.get_text("\n")
    lines = (clean_text(raw_line) for raw_line in raw.splitlines())
    return [line for line in lines if line]


def resolve_link(href: Optional[str], origin: str, events_url: str) -> str:
    """Absolute link for an anchor target, defaulting to the events index."""
    href = (href or "").strip()
    if not href or href.startswith("#"):
        return events_url
    scheme = urlparse(href).scheme.lower()
    if scheme in ("http", "https"):
        return href
    if scheme:
        # mailto:, javascript:, tel: and friends
        return events_url
    return urljoin(origin.rstrip("/") + "/", href)


class EventFieldExtractor:
    """Pulls event fields out of a candidate region."""

    def __init__(self):
        self.title_selectors = "h1, h2, h3, h4, h5, h6, .event-title"
        self.description_selectors = "p, .description, .event-description"
        self.time_pattern = self._init_time_pattern()
        self.location_patterns = self._init_location_patterns()

    def _init_time_pattern(self) -> re.Pattern:
        clock = r"\d{1,2}:\d{2}\s*[AaPp]\.?[Mm]\.?"
        return re.compile(r"\b" + clock + r"(?:\s*[-–—]\s*" + clock + r")?")

    def _init_location_patterns(self) -> List[re.Pattern]:
        """Explicit labels first; a bare 'at' is the weakest signal."""
        return [
            re.compile(r"\b(?:location|venue|where)\b[: \t]+([^\n]+)", re.IGNORECASE),
            re.compile(r"\bat\b[: \t]+([^\n]+)", re.IGNORECASE),
        ]

    def extract(self, element: Tag, origin: str, events_url: str,
                lines: Optional[List[str]] = None) -> ExtractedFields:
        """Extract every field from one candidate region."""
        if lines is None:
            lines = text_lines(element)
        text = "\n".join(lines)

        return ExtractedFields(
            title=self._extract_title(element, lines),
            date_text=find_date_text(text),
            time=self._extract_time(text),
            location=self._extract_location(text),
            description=self._extract_description(element, lines),
            link=self._extract_link(element, origin, events_url),
        )

    def _extract_title(self, element: Tag, lines: List[str]) -> str:
        heading = element.select_one(self.title_selectors)
        if heading:
            title = clean_text(heading.get_text(" "))
            if title:
                return title[:TITLE_MAX]

        for tag_names in ("a", ["strong", "b"]):
            found = element.find(tag_names)
            if found:
                title = clean_text(found.get_text(" "))
                if title:
                    return title[:TITLE_MAX]

        if lines:
            return lines[0][:TITLE_LINE_MAX]
        return ""

    def _extract_time(self, text: str) -> str:
        m = self.time_pattern.search(text)
        return clean_text(m.group(0))[:TIME_MAX] if m else ""

    def _extract_location(self, text: str) -> str:
        for pattern in self.location_patterns:
            m = pattern.search(text)
            if m:
                location = clean_text(m.group(1))
                if location:
                    return location[:LOCATION_MAX]
        return ""

    def _extract_description(self, element: Tag, lines: List[str]) -> str:
        paragraph = element.select_one(self.description_selectors)
        if paragraph:
            description = clean_text(paragraph.get_text(" "))
            if description:
                return description[:DESCRIPTION_MAX]
        return " ".join(lines[1:3])[:DESCRIPTION_MAX]

    def _extract_link(self, element: Tag, origin: str, events_url: str) -> str:
        if element.name == "a" and element.get("href"):
            anchor = element
        else:
            anchor = element.find("a", href=True)
        return resolve_link(anchor.get("href") if anchor else None, origin, events_url)


_default_extractor = EventFieldExtractor()


def extract_fields(element: Tag, origin: str, events_url: str,
                   lines: Optional[List[str]] = None) -> ExtractedFields:
    """Extract fields with the shared default extractor.

    ``lines`` may carry the element's already computed ``text_lines``.
    """
    return _default_extractor.extract(element, origin, events_url, lines)


def is_time_like(text: str) -> bool:
    return bool(_default_extractor.time_pattern.search(text or ""))


# ---------------------------------------------------------------------------
# Record assembly
# ---------------------------------------------------------------------------

def assemble_event(fields: ExtractedFields, chamber: Chamber) -> Optional[ChamberEvent]:
    """Build a canonical record, or None when the candidate is not an event."""
    title = clean_text(fields.title)[:TITLE_MAX]
    if len(title) < MIN_TITLE_LENGTH:
        logger.debug("Discarding candidate with short title: %r", title)
        return None

    event_date = normalize_date(fields.date_text)
    if event_date is None:
        logger.debug("Discarding '%s': no usable date in %r", title, fields.date_text)
        return None

    return ChamberEvent(
        title=title,
        chamber=chamber,
        date=event_date,
        time=clean_text(fields.time)[:TIME_MAX],
        location=clean_text(fields.location)[:LOCATION_MAX],
        description=clean_text(fields.description)[:DESCRIPTION_MAX],
        link=fields.link,
    )
