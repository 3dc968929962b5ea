from radiora.lutron.cache import StatusCache
from radiora.lutron.parser import StatusParser, parse_status
from radiora.lutron.types import StatusEvent, status_key
from radiora.utils.eventbus import EventBus


def make_parser():
    cache = StatusCache()
    bus = EventBus()
    return StatusParser(cache, bus), cache, bus


def test_parse_output_status():
    event = parse_status("~OUTPUT,5,1,75.00")
    assert event == StatusEvent(5, "75.00")
    assert event.value == 75.0


def test_parse_ignores_other_lines():
    assert parse_status("GNET> ") is None
    assert parse_status("~DEVICE,1,2,3") is None
    assert parse_status("~OUTPUT,5,29,6") is None


def test_status_updates_cache_and_clears_in_flight():
    parser, cache, bus = make_parser()
    cache.begin_query(5)

    parser.handle_line("~OUTPUT,5,1,75.00")

    assert cache.snapshot() == {5: {"level": "75.00", "in_flight": False}}


def test_only_listeners_for_matching_id_are_invoked():
    parser, cache, bus = make_parser()
    seen = []
    bus.subscribe(status_key(5), lambda e: seen.append(("five", e.level)))
    bus.subscribe(status_key(6), lambda e: seen.append(("six", e.level)))

    parser.handle_line("~OUTPUT,5,1,10.00")

    assert seen == [("five", "10.00")]


def test_malformed_level_is_logged_and_dropped(caplog):
    parser, cache, bus = make_parser()
    seen = []
    bus.subscribe(status_key(5), seen.append)

    assert parser.handle_line("~OUTPUT,5,1,1.2.3") is None

    assert seen == []
    assert 5 not in cache
    assert "Malformed output level" in caplog.text


def test_listener_failure_does_not_escape():
    parser, cache, bus = make_parser()

    def explode(event):
        raise RuntimeError("boom")

    bus.subscribe(status_key(5), explode)
    assert parser.handle_line("~OUTPUT,5,1,10.00") == StatusEvent(5, "10.00")
    assert cache.get(5).level == "10.00"
