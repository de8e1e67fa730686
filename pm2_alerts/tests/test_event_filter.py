"""
Tests for EventFilter
"""

from ..schemas.events import RawEvent
from ..tools.event_filter import EventFilter, DEFAULT_EVENTS


class TestAccept:
    """Tests for allow-list checks"""

    def test_default_events(self):
        event_filter = EventFilter()

        for event_type in DEFAULT_EVENTS:
            assert event_filter.accept("api", event_type)

        # Noisy types are not in the default set
        assert not event_filter.accept("api", "log")
        assert not event_filter.accept("api", "restart overlimit")

    def test_empty_event_list_allows_all(self):
        event_filter = EventFilter(allowed_events=[])

        assert event_filter.accept("api", "log")
        assert event_filter.accept("api", "anything")

    def test_app_allow_list(self):
        event_filter = EventFilter(allowed_apps=["api", "worker"])

        assert event_filter.accept("api", "exit")
        assert event_filter.accept("worker", "online")
        assert not event_filter.accept("cron", "exit")

    def test_both_lists_must_match(self):
        event_filter = EventFilter(allowed_events=["exit"], allowed_apps=["api"])

        assert event_filter.accept("api", "exit")
        assert not event_filter.accept("api", "online")
        assert not event_filter.accept("worker", "exit")


class TestAcceptEvent:
    """Tests for full raw event checks"""

    def test_missing_instance_id_rejected(self):
        event_filter = EventFilter(allowed_events=[])

        event = RawEvent(app_name="api", instance_id=None, event="exit")
        assert not event_filter.accept_event(event)

    def test_instance_zero_accepted(self):
        event_filter = EventFilter()

        event = RawEvent(app_name="api", instance_id=0, event="exit")
        assert event_filter.accept_event(event)


class TestRawEventAdapter:
    """Tests for RawEvent.from_bus_payload"""

    def test_bus_payload(self):
        event = RawEvent.from_bus_payload(
            {"event": "online", "process": {"name": "api", "pm_id": 3}}
        )

        assert event.app_name == "api"
        assert event.instance_id == 3
        assert event.event == "online"

    def test_missing_process(self):
        event = RawEvent.from_bus_payload({"event": "exit"})

        assert event.app_name == "unknown-app"
        assert event.instance_id is None
