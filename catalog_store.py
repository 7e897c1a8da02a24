"""Read and write the events catalog consumed by the web front-end.

The catalog is a single JSON document replaced wholesale on every write:

    {
        "lastUpdated": "2025-03-01T06:00:00+00:00",
        "events": [{"title": ..., "chamber": ..., "date": ..., ...}, ...]
    }

A missing or unreadable catalog reads as None. Writes go to a temporary
file that is renamed over the old catalog, so a failed write leaves the
previous catalog intact.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from event_parser import ChamberEvent

logger = logging.getLogger(__name__)

DATA_PATH = Path(os.getenv("CHAMBER_EVENTS_DATA", Path(__file__).with_name("events-data.json")))

PathLike = Union[str, Path]


class CatalogWriteError(Exception):
    """The catalog could not be written; the run must be reported as failed."""


@dataclass
class Catalog:
    last_updated: str
    events: List[ChamberEvent] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "lastUpdated": self.last_updated,
            "events": [event.to_dict() for event in self.events],
        }


def _timestamp(now: Optional[datetime] = None) -> str:
    if now is None:
        now = datetime.now(timezone.utc)
    return now.isoformat()


def read_catalog(path: PathLike = DATA_PATH) -> Optional[Catalog]:
    """Load the stored catalog, or None when it is missing or corrupt."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.info("No catalog at %s; starting empty", path)
        return None
    except (OSError, ValueError) as e:
        logger.warning("Could not read catalog %s, treating it as empty: %s", path, e)
        return None

    if not isinstance(data, dict) or not isinstance(data.get("events"), list):
        logger.warning("Catalog %s has no event list, treating it as empty", path)
        return None

    events = []
    for entry in data["events"]:
        try:
            events.append(ChamberEvent.from_dict(entry))
        except ValueError as e:
            logger.warning("Skipping malformed catalog entry: %s", e)

    return Catalog(last_updated=str(data.get("lastUpdated") or ""), events=events)


def save_catalog(path: PathLike, catalog: Catalog) -> Catalog:
    """Atomically replace the catalog file."""
    path = Path(path)
    payload = json.dumps(catalog.to_dict(), ensure_ascii=False, indent=2)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.write("\n")
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
    except OSError as e:
        raise CatalogWriteError(f"Could not write catalog {path}: {e}") from e

    logger.info("Saved %d events to %s", len(catalog.events), path)
    return catalog


def write_catalog(path: PathLike, events: List[ChamberEvent],
                  now: Optional[datetime] = None) -> Catalog:
    """Replace the catalog with ``events`` stamped with the current time."""
    return save_catalog(path, Catalog(last_updated=_timestamp(now), events=list(events)))


def touch_catalog(path: PathLike, catalog: Optional[Catalog],
                  now: Optional[datetime] = None) -> Catalog:
    """Refresh only the timestamp, keeping the stored events as they are."""
    events = catalog.events if catalog is not None else []
    return write_catalog(path, events, now)
