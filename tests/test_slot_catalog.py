from datetime import UTC, date, datetime, timedelta

import pytest

from booking_api.services.slot_service import SlotCatalog, booking_timezone, is_valid_slot

IST = booking_timezone(330)
TODAY = date(2026, 10, 19)


def _minutes(slot: str) -> int:
    hour, minute = slot.split(":")
    return int(hour) * 60 + int(minute)


def test_past_date_is_empty():
    now = datetime(2026, 10, 19, 10, 0, tzinfo=IST)
    assert list(SlotCatalog(TODAY - timedelta(days=1), now)) == []
    assert list(SlotCatalog(date(2020, 1, 1), now)) == []


def test_future_date_returns_whole_window():
    now = datetime(2026, 10, 19, 17, 0, tzinfo=IST)
    slots = list(SlotCatalog(TODAY + timedelta(days=3), now))
    assert slots[0] == "08:00"
    assert slots[-1] == "18:30"
    assert len(slots) == 64
    gaps = {_minutes(b) - _minutes(a) for a, b in zip(slots, slots[1:])}
    assert gaps == {10}


@pytest.mark.parametrize(
    "now_time, first",
    [
        ((9, 5, 0), "09:10"),
        ((9, 0, 0), "09:10"),
        ((9, 0, 30), "09:10"),
        ((7, 30, 0), "08:00"),
        ((18, 25, 0), "18:30"),
    ],
)
def test_today_only_includes_slots_after_now(now_time, first):
    now = datetime(2026, 10, 19, *now_time, tzinfo=IST)
    slots = list(SlotCatalog(TODAY, now))
    assert slots[0] == first
    now_minutes = now.hour * 60 + now.minute
    assert all(_minutes(s) > now_minutes for s in slots)
    assert slots == sorted(slots)
    assert slots[-1] == "18:30"


def test_today_after_window_is_empty():
    now = datetime(2026, 10, 19, 18, 30, tzinfo=IST)
    assert list(SlotCatalog(TODAY, now)) == []


def test_now_is_read_in_booking_offset():
    # 03:35 UTC is 09:05 at UTC+05:30
    now = datetime(2026, 10, 19, 3, 35, tzinfo=UTC)
    assert list(SlotCatalog(TODAY, now))[0] == "09:10"


def test_day_boundary_follows_booking_offset():
    # 20:00 UTC on the 18th is already 01:30 on the 19th at UTC+05:30
    now = datetime(2026, 10, 18, 20, 0, tzinfo=UTC)
    assert list(SlotCatalog(date(2026, 10, 18), now)) == []
    assert len(list(SlotCatalog(TODAY, now))) == 64


def test_catalog_is_restartable():
    catalog = SlotCatalog(TODAY, datetime(2026, 10, 19, 12, 0, tzinfo=IST))
    assert list(catalog) == list(catalog)
    assert next(iter(catalog)) == "12:10"


def test_last_slot_never_passes_window_end():
    now = datetime(2026, 10, 19, 0, 0, tzinfo=IST)
    catalog = SlotCatalog(TODAY + timedelta(days=1), now, window_start="08:00", window_end="08:25")
    assert list(catalog) == ["08:00", "08:10", "08:20"]


def test_custom_interval():
    now = datetime(2026, 10, 19, 0, 0, tzinfo=IST)
    catalog = SlotCatalog(TODAY + timedelta(days=1), now, window_end="09:00", interval_minutes=30)
    assert list(catalog) == ["08:00", "08:30", "09:00"]


def test_invalid_interval_rejected():
    with pytest.raises(ValueError):
        SlotCatalog(TODAY, datetime(2026, 10, 19, tzinfo=IST), interval_minutes=0)


@pytest.mark.parametrize("value", ["00:00", "09:10", "18:30", "23:59"])
def test_valid_slot_values(value):
    assert is_valid_slot(value)


@pytest.mark.parametrize("value", ["9:10", "24:00", "12:60", "12:5", "noon", "", "12:00:00"])
def test_invalid_slot_values(value):
    assert not is_valid_slot(value)
