from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from booking_api.core.errors import NotFoundError, SlotConflictError
from booking_api.models.appointment import AppointmentCreate, PaymentStatus
from booking_api.services.appointment_service import (
    create_appointment,
    delete_appointment,
    find_appointments,
    find_conflicting_appointments,
    get_appointment,
    set_attempted,
)
from booking_api.services.booking_service import book_unpaid
from booking_api.services.slot_service import get_booked_times
from tests.conftest import BOOKING_DATE, form_data

CONTACT = {
    "name": "Ravi",
    "email": "ravi@example.com",
    "contact_number": "+919000000000",
    "area": "Remote",
}


async def test_create_collapses_and_orders_slots(session):
    appointment = await create_appointment(session, date=BOOKING_DATE, times=["10:10", "10:00", "10:10"], **CONTACT)
    await session.commit()
    assert appointment.id is not None
    assert appointment.times == ["10:00", "10:10"]
    assert appointment.attempted is False
    assert appointment.created_at is not None


async def test_unique_index_rejects_second_confirmed_booking(session, make_appointment):
    # bypasses the advisory check: the index alone must hold the invariant
    await make_appointment(times=["14:00"])
    with pytest.raises(SlotConflictError):
        await create_appointment(
            session,
            date=BOOKING_DATE,
            times=["13:50", "14:00"],
            payment_status=PaymentStatus.COMPLETED.value,
            **CONTACT,
        )
    assert await find_appointments(session, date=BOOKING_DATE) != []
    assert len(await find_appointments(session, date=BOOKING_DATE)) == 1


async def test_unconfirmed_duplicates_are_allowed(session):
    for status in (None, PaymentStatus.PENDING.value, None):
        await create_appointment(session, date=BOOKING_DATE, times=["16:00"], payment_status=status, **CONTACT)
    await session.commit()
    assert len(await find_appointments(session, date=BOOKING_DATE, times=["16:00"])) == 3
    assert await find_conflicting_appointments(session, BOOKING_DATE, ["16:00"]) == []


async def test_find_filters(session, make_appointment):
    a = await make_appointment(times=["09:00"])
    b = await make_appointment(times=["09:10"], payment_status=None)
    await make_appointment(times=["09:00"], date="2031-05-21")

    by_date = await find_appointments(session, date=BOOKING_DATE)
    assert {x.id for x in by_date} == {a.id, b.id}

    completed = await find_appointments(session, date=BOOKING_DATE, payment_status="completed")
    assert [x.id for x in completed] == [a.id]

    by_time = await find_appointments(session, date=BOOKING_DATE, times=["09:10", "11:00"])
    assert [x.id for x in by_time] == [b.id]

    assert await find_conflicting_appointments(session, BOOKING_DATE, ["09:00"], exclude_id=a.id) == []


async def test_booked_times_is_idempotent(session, make_appointment):
    await make_appointment(times=["08:00", "08:10"])
    first = await get_booked_times(session, BOOKING_DATE)
    second = await get_booked_times(session, BOOKING_DATE)
    assert first == second == ["08:00", "08:10"]


async def test_get_and_delete_missing_raise_not_found(session):
    with pytest.raises(NotFoundError):
        await get_appointment(session, 12345)
    with pytest.raises(NotFoundError):
        await delete_appointment(session, 12345)


async def test_timestamps_are_timezone_aware(session):
    appointment = await create_appointment(session, date=BOOKING_DATE, times=["10:00"], **CONTACT)
    await session.commit()
    assert appointment.created_at.tzinfo is not None
    assert appointment.updated_at.utcoffset() == timedelta(0)

    await set_attempted(session, appointment.id, True)
    await session.commit()
    assert appointment.updated_at.tzinfo is not None
    assert appointment.updated_at >= appointment.created_at


async def test_other_integrity_errors_are_not_reported_as_conflicts(session):
    with pytest.raises(IntegrityError):
        await create_appointment(session, date=BOOKING_DATE, times=["10:00"], **{**CONTACT, "name": None})


async def test_booking_service_accepts_model_layer_input(session, settings):
    form = AppointmentCreate.model_validate(form_data(times="12:00"))
    enabled = settings.model_copy(update={"free_booking_enabled": True})
    appointment = await book_unpaid(session, enabled, form)
    await session.commit()
    assert appointment.times == ["12:00"]
    assert appointment.payment_status is None
