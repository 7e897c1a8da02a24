"""Chamber Event Catalog Updater

This module runs the whole ingestion pipeline:
- Scrape every chamber source (scrape.py)
- Merge fresh events with the stored catalog, dropping duplicates
- Keep events dated today or later, ordered by date
- Write the catalog (or only refresh its timestamp when nothing was found)

Usage:
    python update_events.py                     # Update events-data.json
    python update_events.py --debug             # Run with debug logging
    python update_events.py --dry-run           # Print the result, write nothing
    python update_events.py --list --within week --chamber maryland
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import scrape
from catalog_store import (
    DATA_PATH, CatalogWriteError, read_catalog, touch_catalog, write_catalog,
)
from event_deduplicator import merge_with_catalog
from event_parser import Chamber, ChamberEvent
from event_window import WINDOWS, select_events, upcoming_events
from fetcher import FetchOptions, get_fetcher

logger = logging.getLogger(__name__)


class EventUpdateProcessor:
    """Orchestrates one pipeline run against the catalog file."""

    def __init__(self, data_path=DATA_PATH, options: Optional[FetchOptions] = None,
                 sources: Iterable[scrape.ChamberSource] = scrape.SOURCES,
                 fetcher_factory=get_fetcher, max_workers: int = 1,
                 today: Optional[date] = None):
        self.data_path = Path(data_path)
        self.options = options or FetchOptions.from_env()
        self.sources = list(sources)
        self.fetcher_factory = fetcher_factory
        self.max_workers = max_workers
        self.today = today

        self.stats = {
            'start_time': None,
            'end_time': None,
            'sources_attempted': 0,
            'sources_without_events': 0,
            'events_extracted': 0,
            'new_events': 0,
            'duplicates_removed': 0,
            'past_events_dropped': 0,
            'final_events': 0,
            'catalog_written': False,
        }

    def run(self, dry_run: bool = False) -> Dict[str, Any]:
        """Run the pipeline; CatalogWriteError propagates to the caller."""
        self.stats['start_time'] = datetime.now()
        today = self.today or date.today()

        fetched = self._scrape_sources()
        existing = read_catalog(self.data_path)
        stored_events = existing.events if existing is not None else []

        if not fetched:
            # Stale data beats no data: keep whatever is stored.
            logger.warning("No events found. Keeping existing events in %s", self.data_path)
            events = stored_events
            # An unreadable file is left for the operator rather than replaced.
            if not dry_run and (existing is not None or not self.data_path.exists()):
                touch_catalog(self.data_path, existing)
                self.stats['catalog_written'] = True
        else:
            merge = merge_with_catalog(fetched, stored_events)
            events = upcoming_events(merge.merged_events, today)

            self.stats['new_events'] = merge.new_count
            self.stats['duplicates_removed'] = merge.duplicates_removed
            self.stats['past_events_dropped'] = len(merge.merged_events) - len(events)

            if not dry_run:
                write_catalog(self.data_path, events)
                self.stats['catalog_written'] = True

        self.stats['final_events'] = len(events)
        self.stats['end_time'] = datetime.now()
        return {
            'events': events,
            'statistics': self.stats,
        }

    def _scrape_sources(self) -> List[ChamberEvent]:
        per_source = scrape.all_events(
            self.sources,
            options=self.options,
            fetcher_factory=self.fetcher_factory,
            max_workers=self.max_workers,
        )
        self.stats['sources_attempted'] = len(per_source)
        self.stats['sources_without_events'] = sum(1 for batch in per_source if not batch)

        fetched = [event for batch in per_source for event in batch]
        self.stats['events_extracted'] = len(fetched)
        logger.info("Found %d events from %d sources", len(fetched), len(per_source))
        return fetched


def format_event_line(index: int, event: ChamberEvent) -> str:
    line = f"{index}. {event.title} - {event.date}"
    if event.time:
        line += f" {event.time}"
    line += f" ({event.chamber.display_name})"
    if event.location:
        line += f"\n   Location: {event.location}"
    line += f"\n   {event.link}"
    return line


def list_catalog(data_path, chamber: Optional[Chamber], within: str) -> int:
    catalog = read_catalog(data_path)
    if catalog is None:
        print(f"No catalog found at {data_path}")
        return 1

    events = select_events(catalog.events, chamber=chamber, within=within)
    print(f"Last updated: {catalog.last_updated or 'unknown'}")
    print(f"{len(events)} upcoming events")
    for i, event in enumerate(events, 1):
        print(format_event_line(i, event))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Update the chamber of commerce events catalog')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--data', type=str, default=str(DATA_PATH), help='Catalog JSON file')
    parser.add_argument('--timeout', type=float, help='Per-fetch timeout in seconds')
    parser.add_argument('--user-agent', type=str, help='User-Agent header sent to chamber sites')
    parser.add_argument('--workers', type=int, default=1, help='Sources fetched concurrently')
    parser.add_argument('--dry-run', action='store_true', help='Print events instead of writing the catalog')
    parser.add_argument('--list', action='store_true', help='List events already in the catalog')
    parser.add_argument('--chamber', choices=[c.value for c in Chamber], help='Only list one chamber')
    parser.add_argument('--within', choices=WINDOWS, default='all', help='Only list events in this window')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if args.list:
        chamber = Chamber(args.chamber) if args.chamber else None
        return list_catalog(args.data, chamber, args.within)

    try:
        options = FetchOptions.from_env()
    except ValueError as e:
        parser.error(f"invalid CHAMBER_EVENTS_* setting: {e}")
    if args.timeout is not None:
        options.timeout = args.timeout
    if args.user_agent:
        options.user_agent = args.user_agent

    processor = EventUpdateProcessor(data_path=args.data, options=options, max_workers=args.workers)

    print("Starting chamber event update")
    print("=" * 60)
    try:
        result = processor.run(dry_run=args.dry_run)
    except CatalogWriteError as e:
        print(f"\nUpdate failed: {e}", file=sys.stderr)
        return 1

    stats = result['statistics']
    processing_time = (stats['end_time'] - stats['start_time']).total_seconds()
    print("\nUpdate completed")
    print(f"   • Sources attempted: {stats['sources_attempted']} ({stats['sources_without_events']} without events)")
    print(f"   • Events extracted: {stats['events_extracted']}")
    print(f"   • New events: {stats['new_events']}")
    print(f"   • Duplicates removed: {stats['duplicates_removed']}")
    print(f"   • Past events dropped: {stats['past_events_dropped']}")
    print(f"   • Events in catalog: {stats['final_events']}")
    print(f"   • Processing time: {processing_time:.1f} seconds")

    if args.dry_run:
        json.dump([event.to_dict() for event in result['events']], sys.stdout,
                  ensure_ascii=False, indent=2)
        print()
    elif stats['catalog_written']:
        print(f"Catalog saved to: {args.data}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
