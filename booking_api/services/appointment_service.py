import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.core.errors import NotFoundError, SlotConflictError
from booking_api.models.appointment import Appointment, AppointmentSlot, PaymentStatus, utc_now

logger = logging.getLogger(__name__)

CONFIRMED_SLOT_INDEX = "uq_appointment_slots_confirmed_date_time"
# SQLite reports the columns of a unique index rather than its name
_SQLITE_CONFIRMED_SLOT_MSG = "UNIQUE constraint failed: appointment_slots.date, appointment_slots.time"


def _build_slots(day: str, times: Iterable[str], confirmed: bool) -> list[AppointmentSlot]:
    return [AppointmentSlot(date=day, time=t, confirmed=confirmed) for t in sorted(set(times))]


def is_confirmed_slot_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return CONFIRMED_SLOT_INDEX in message or _SQLITE_CONFIRMED_SLOT_MSG in message


async def _flush_or_conflict(session: AsyncSession, day: str, times: Iterable[str]) -> None:
    """Flush pending writes; a unique-index hit on confirmed slots becomes a SlotConflictError."""
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        if not is_confirmed_slot_violation(e):
            raise
        logger.warning("Slot uniqueness violated on write for date=%s slots=%s", day, list(times))
        raise SlotConflictError() from e


async def find_appointments(
    session: AsyncSession,
    date: str | None = None,
    times: Iterable[str] | None = None,
    payment_status: str | None = None,
    exclude_id: int | None = None,
) -> list[Appointment]:
    """Filter appointments; ``times`` matches appointments holding any of the given slots."""
    q = select(Appointment)
    if date is not None:
        q = q.where(Appointment.date == date)
    if payment_status is not None:
        q = q.where(Appointment.payment_status == payment_status)
    if exclude_id is not None:
        q = q.where(Appointment.id != exclude_id)
    if times is not None:
        wanted = list(times)
        slot_q = select(AppointmentSlot.appointment_id).where(AppointmentSlot.time.in_(wanted))
        if date is not None:
            slot_q = slot_q.where(AppointmentSlot.date == date)
        q = q.where(Appointment.id.in_(slot_q))
    q = q.order_by(Appointment.created_at.desc(), Appointment.id.desc())
    result = await session.execute(q)
    return list(result.scalars().all())


async def find_conflicting_appointments(
    session: AsyncSession, date: str, times: Iterable[str], exclude_id: int | None = None
) -> list[Appointment]:
    """Confirmed appointments on ``date`` sharing any slot with ``times``."""
    return await find_appointments(
        session,
        date=date,
        times=times,
        payment_status=PaymentStatus.COMPLETED.value,
        exclude_id=exclude_id,
    )


async def ensure_slots_free(
    session: AsyncSession, date: str, times: Iterable[str], exclude_id: int | None = None
) -> None:
    times = list(times)
    existing = await find_conflicting_appointments(session, date, times, exclude_id=exclude_id)
    if existing:
        logger.info("One or more slots already booked for date: %s, slots: %s", date, times)
        raise SlotConflictError()


async def create_appointment(
    session: AsyncSession,
    *,
    name: str,
    email: str,
    contact_number: str,
    area: str,
    date: str,
    times: Iterable[str],
    remark: str | None = None,
    payment_status: str | None = None,
    razorpay_order_id: str | None = None,
    razorpay_payment_id: str | None = None,
) -> Appointment:
    times = list(times)
    appointment = Appointment(
        name=name,
        email=email,
        contact_number=contact_number,
        area=area,
        date=date,
        remark=remark,
        payment_status=payment_status,
        razorpay_order_id=razorpay_order_id,
        razorpay_payment_id=razorpay_payment_id,
    )
    appointment.slots = _build_slots(date, times, appointment.confirmed)
    session.add(appointment)
    await _flush_or_conflict(session, date, times)
    logger.info("Appointment saved: id=%s date=%s slots=%s", appointment.id, date, appointment.times)
    return appointment


async def list_all_appointments(session: AsyncSession) -> list[Appointment]:
    return await find_appointments(session)


async def get_appointment(session: AsyncSession, appointment_id: int) -> Appointment:
    appointment = await session.get(Appointment, appointment_id)
    if not appointment:
        logger.info("Appointment not found, ID: %s", appointment_id)
        raise NotFoundError()
    return appointment


async def update_appointment(
    session: AsyncSession,
    appointment_id: int,
    *,
    name: str,
    email: str,
    contact_number: str,
    area: str,
    date: str,
    times: Iterable[str],
    remark: str | None = None,
) -> Appointment:
    """Replace the editable fields and slot set of an appointment."""
    times = sorted(set(times))
    appointment = await get_appointment(session, appointment_id)
    await ensure_slots_free(session, date, times, exclude_id=appointment_id)
    appointment.name = name
    appointment.email = email
    appointment.contact_number = contact_number
    appointment.area = area
    appointment.date = date
    appointment.remark = remark
    appointment.updated_at = utc_now()
    # Old rows must be gone before new ones hit the unique index
    appointment.slots.clear()
    await session.flush()
    appointment.slots.extend(_build_slots(date, times, appointment.confirmed))
    await _flush_or_conflict(session, date, times)
    logger.info("Appointment updated: id=%s", appointment_id)
    return appointment


async def set_attempted(session: AsyncSession, appointment_id: int, attempted: bool) -> Appointment:
    appointment = await get_appointment(session, appointment_id)
    appointment.attempted = attempted
    appointment.updated_at = utc_now()
    session.add(appointment)
    await session.flush()
    logger.info("Appointment attempted status updated: id=%s attempted=%s", appointment_id, attempted)
    return appointment


async def delete_appointment(session: AsyncSession, appointment_id: int) -> None:
    appointment = await get_appointment(session, appointment_id)
    await session.delete(appointment)
    await session.flush()
    logger.info("Appointment deleted: id=%s", appointment_id)
