"""Event deduplication across sources and against the stored catalog.

Two records are the same event when their titles match case-insensitively
and they fall on the same date. The chamber is not part of the identity,
so one regional event listed by two chambers is kept once.

The set of keys already seen is passed in explicitly; nothing here keeps
state between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

from event_parser import ChamberEvent

logger = logging.getLogger(__name__)

EventKey = Tuple[str, str]


@dataclass
class DeduplicationResult:
    """Results of merging fresh events into the catalog."""
    original_count: int
    deduplicated_count: int
    new_count: int  # fresh events not already stored
    merged_events: List[ChamberEvent]

    @property
    def duplicates_removed(self) -> int:
        return self.original_count - self.deduplicated_count


def event_key(event: ChamberEvent) -> EventKey:
    return event.key


def deduplicate_events(events: Iterable[ChamberEvent],
                       seen: Optional[Set[EventKey]] = None) -> List[ChamberEvent]:
    """Keep the first occurrence of each key, in input order.

    ``seen`` is updated in place with every kept key, so it can be reused
    across several calls to carry earlier sources forward.
    """
    if seen is None:
        seen = set()

    unique = []
    for event in events:
        key = event_key(event)
        if key in seen:
            logger.debug("Dropping duplicate '%s' on %s (%s)",
                         event.title, event.date, event.chamber.value)
            continue
        seen.add(key)
        unique.append(event)
    return unique


def merge_with_catalog(new_events: Iterable[ChamberEvent],
                       existing_events: Iterable[ChamberEvent]) -> DeduplicationResult:
    """Merge fresh events into previously stored ones.

    Stored events are taken first and pre-populate the seen set, so a rerun
    never duplicates what is already in the catalog; the stored copy wins.
    """
    new_events = list(new_events)
    existing_events = list(existing_events)

    seen: Set[EventKey] = set()
    merged = deduplicate_events(existing_events, seen)
    fresh = deduplicate_events(new_events, seen)
    merged.extend(fresh)

    result = DeduplicationResult(
        original_count=len(existing_events) + len(new_events),
        deduplicated_count=len(merged),
        new_count=len(fresh),
        merged_events=merged,
    )
    logger.info("Merged %d stored and %d fetched events into %d (%d duplicates removed)",
                len(existing_events), len(new_events), result.deduplicated_count,
                result.duplicates_removed)
    return result
