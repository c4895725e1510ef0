from collections.abc import Iterable, Iterator
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.core.config import Settings
from booking_api.models.appointment import AppointmentSlot, is_valid_slot


def booking_timezone(offset_minutes: int) -> timezone:
    return timezone(timedelta(minutes=offset_minutes))


def _parse_hhmm(value: str) -> time:
    if not is_valid_slot(value):
        raise ValueError(f"Invalid slot value: {value!r}")
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


class SlotCatalog:
    """Bookable slot values for one day.

    Iterating yields ``HH:MM`` strings from ``window_start`` to ``window_end``
    (both inclusive) every ``interval_minutes``. Past days yield nothing;
    for today only slots strictly later than ``now`` are yielded. ``now`` is
    read in the booking timezone. Each ``iter()`` starts over.
    """

    def __init__(
        self,
        day: date,
        now: datetime,
        window_start: str = "08:00",
        window_end: str = "18:30",
        interval_minutes: int = 10,
        tz: timezone = booking_timezone(330),
    ) -> None:
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        self.day = day
        self.tz = tz
        self.now = now.astimezone(tz) if now.tzinfo else now.replace(tzinfo=tz)
        self.start = _parse_hhmm(window_start)
        self.end = _parse_hhmm(window_end)
        self.interval = timedelta(minutes=interval_minutes)

    @classmethod
    def from_settings(cls, day: date, now: datetime, settings: Settings) -> "SlotCatalog":
        return cls(
            day,
            now,
            window_start=settings.slot_window_start,
            window_end=settings.slot_window_end,
            interval_minutes=settings.slot_interval_minutes,
            tz=booking_timezone(settings.booking_utc_offset_minutes),
        )

    def __iter__(self) -> Iterator[str]:
        today = self.now.date()
        if self.day < today:
            return
        current = datetime.combine(self.day, self.start, tzinfo=self.tz)
        end = datetime.combine(self.day, self.end, tzinfo=self.tz)
        while current <= end:
            if self.day > today or current > self.now:
                yield current.strftime("%H:%M")
            current += self.interval


async def get_booked_times(session: AsyncSession, day: str) -> list[str]:
    """Time values held by confirmed appointments on ``day`` (YYYY-MM-DD)."""
    result = await session.execute(
        select(AppointmentSlot.time)
        .where(AppointmentSlot.date == day, AppointmentSlot.confirmed == True)  # noqa: E712
        .order_by(AppointmentSlot.time)
    )
    return [row[0] for row in result.all()]


async def get_available_slots_for_date(
    session: AsyncSession, catalog: Iterable[str], day: str
) -> list[tuple[str, bool]]:
    """Returns list of (slot, available) for every catalog slot."""
    slots = list(catalog)
    if not slots:
        return []
    booked = set(await get_booked_times(session, day))
    return [(s, s not in booked) for s in slots]
