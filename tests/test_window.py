from datetime import datetime, timedelta, timezone

from dormseat.config import Config
from dormseat.domain.models import ReservationWindow
from dormseat.domain.window import is_booking_open, load_window

from .helpers import FakeClock, InMemorySettingsStore

START = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
END = datetime(2026, 3, 1, 18, 0, tzinfo=timezone.utc)
WINDOW = ReservationWindow(start=START, end=END)


def test_open_inside_window():
    assert is_booking_open(WINDOW, START + timedelta(hours=1))


def test_bounds_inclusive():
    assert is_booking_open(WINDOW, START)
    assert is_booking_open(WINDOW, END)


def test_closed_outside_window():
    assert not is_booking_open(WINDOW, START - timedelta(seconds=1))
    assert not is_booking_open(WINDOW, END + timedelta(seconds=1))


def test_missing_window_is_closed():
    assert not is_booking_open(None, START)


def test_missing_bound_is_closed():
    assert not is_booking_open(ReservationWindow(start=START), START + timedelta(hours=1))
    assert not is_booking_open(ReservationWindow(end=END), START)


def test_other_timezones_compare_by_instant():
    seoul = timezone(timedelta(hours=9))

    assert is_booking_open(WINDOW, datetime(2026, 3, 1, 19, 0, tzinfo=seoul))
    assert not is_booking_open(WINDOW, datetime(2026, 3, 1, 17, 59, tzinfo=seoul))


def test_naive_now_is_utc():
    assert is_booking_open(WINDOW, datetime(2026, 3, 1, 12, 0))


# ── stored window ──────────────────────────────────────────────────────


class TestLoadWindow:
    def test_seeds_from_config_when_absent(self):
        settings = InMemorySettingsStore(FakeClock())
        config = Config(default_window_start=START, default_window_end=END)

        window = load_window(settings, config)

        assert (window.start, window.end) == (START, END)
        assert settings.get_window().start == START

    def test_existing_record_untouched(self):
        settings = InMemorySettingsStore(FakeClock())
        settings.put_window(None, END)
        config = Config(default_window_start=START, default_window_end=END)

        window = load_window(settings, config)

        assert window.start is None
        assert window.end == END
