"""
Unit tests for event_window: upcoming filter, ordering and display windows.
"""

from datetime import date, timedelta

import pytest

from event_parser import Chamber
from event_window import filter_upcoming, select_events, sort_by_date, upcoming_events, window_end

TODAY = date(2025, 3, 10)


class TestFilterUpcoming:
    """Tests for filter_upcoming."""

    def test_today_is_kept(self, create_event):
        event = create_event(date=TODAY.isoformat())
        assert filter_upcoming([event], TODAY) == [event]

    def test_yesterday_is_dropped(self, create_event):
        event = create_event(date=(TODAY - timedelta(days=1)).isoformat())
        assert filter_upcoming([event], TODAY) == []

    def test_invalid_stored_date_is_dropped(self, create_event):
        event = create_event(date="someday")
        assert filter_upcoming([event], TODAY) == []

    def test_defaults_to_current_date(self, create_event):
        far_future = create_event(date="2999-01-01")
        long_past = create_event(date="2000-01-01")
        assert filter_upcoming([far_future, long_past]) == [far_future]


class TestSortByDate:
    """Tests for sort_by_date and upcoming_events."""

    def test_ascending_and_stable(self, create_event):
        events = [
            create_event(title="Late Event", date="2025-05-01"),
            create_event(title="Same Day First", date="2025-04-01"),
            create_event(title="Early Event", date="2025-03-15"),
            create_event(title="Same Day Second", date="2025-04-01"),
        ]
        result = sort_by_date(events)

        assert [e.title for e in result] == ["Early Event", "Same Day First", "Same Day Second", "Late Event"]

    def test_upcoming_output_is_non_decreasing(self, create_event):
        dates = ["2025-06-01", "2025-03-09", "2025-03-10", "2025-04-15", "2025-03-11", "2024-12-31"]
        events = [create_event(title=f"Event {i}", date=d) for i, d in enumerate(dates)]

        result = upcoming_events(events, TODAY)
        result_dates = [e.date for e in result]

        assert result_dates == sorted(result_dates)
        assert result_dates[0] == "2025-03-10"
        assert "2025-03-09" not in result_dates
        assert len(result) == 4


class TestSelectEvents:
    """Tests for select_events and window_end."""

    def test_filters_by_chamber(self, create_event):
        events = [
            create_event(title="Rockville Mixer", date="2025-03-12", chamber=Chamber.ROCKVILLE),
            create_event(title="Bethesda Expo Day", date="2025-03-12", chamber=Chamber.BETHESDA),
        ]
        result = select_events(events, TODAY, chamber=Chamber.BETHESDA)

        assert [e.title for e in result] == ["Bethesda Expo Day"]

    def test_week_window(self, create_event):
        events = [
            create_event(title="In a week", date="2025-03-17"),
            create_event(title="In eight days", date="2025-03-18"),
        ]
        result = select_events(events, TODAY, within="week")

        assert [e.title for e in result] == ["In a week"]

    def test_today_window(self, create_event):
        events = [create_event(title="Today's lunch", date="2025-03-10"), create_event(date="2025-03-11")]
        assert [e.title for e in select_events(events, TODAY, within="today")] == ["Today's lunch"]

    def test_month_window_uses_calendar_months(self):
        assert window_end(date(2025, 1, 31), "month") == date(2025, 2, 28)
        assert window_end(TODAY, "all") is None

    def test_unknown_window(self):
        with pytest.raises(ValueError):
            window_end(TODAY, "year")
