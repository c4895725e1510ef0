"""Paid booking flow: order creation and payment verification.

Nothing is reserved between ``create_order`` and ``verify_payment``; both run
the same conflict check and the confirmed-slot unique index decides the
winner when two verifications race.
"""
import logging
import time
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.core.config import Settings
from booking_api.core.errors import FeatureDisabledError, PaymentSignatureError, ValidationError
from booking_api.core.security import verify_payment_signature
from booking_api.models.appointment import Appointment, AppointmentCreate, PaymentStatus
from booking_api.services.appointment_service import create_appointment, ensure_slots_free
from booking_api.services.payment_gateway import RazorpayClient

logger = logging.getLogger(__name__)


def _receipt_id() -> str:
    return f"receipt_{int(time.time() * 1000)}"


async def create_order(
    session: AsyncSession,
    gateway: RazorpayClient,
    settings: Settings,
    amount: int,
    currency: str,
    slots: Sequence[str],
    date: str,
) -> str:
    """Check the slots are free and open a provider order. Returns the order id."""
    if not amount or not currency or not slots or not date:
        raise ValidationError()
    if settings.slot_price is not None:
        expected = len(set(slots)) * settings.slot_price * 100
        if amount != expected:
            raise ValidationError(f"Amount must be {expected} for {len(set(slots))} slot(s)")

    await ensure_slots_free(session, date, slots)

    order = await gateway.create_order(amount, currency, _receipt_id())
    logger.info("Order created: order_id=%s date=%s slots=%s amount=%s", order.id, date, list(slots), amount)
    return order.id


async def verify_payment(
    session: AsyncSession,
    settings: Settings,
    order_id: str,
    payment_id: str,
    signature: str,
    form: AppointmentCreate,
) -> Appointment:
    """Authenticate the checkout callback and persist the confirmed appointment."""
    if not order_id or not payment_id or not signature or form is None:
        raise ValidationError("Required payment details are missing")

    if not verify_payment_signature(settings.razorpay_key_secret, order_id, payment_id, signature):
        logger.warning("Invalid payment signature for order_id=%s payment_id=%s", order_id, payment_id)
        raise PaymentSignatureError()

    await ensure_slots_free(session, form.date, form.time)

    return await create_appointment(
        session,
        name=form.name,
        email=form.email,
        contact_number=form.contact_number,
        area=form.area.value,
        date=form.date,
        times=form.time,
        remark=form.remark,
        payment_status=PaymentStatus.COMPLETED.value,
        razorpay_order_id=order_id,
        razorpay_payment_id=payment_id,
    )


async def book_unpaid(session: AsyncSession, settings: Settings, form: AppointmentCreate) -> Appointment:
    """Create an appointment without payment; only when free booking is switched on."""
    if not settings.free_booking_enabled:
        raise FeatureDisabledError("Booking without payment is disabled")
    await ensure_slots_free(session, form.date, form.time)
    return await create_appointment(
        session,
        name=form.name,
        email=form.email,
        contact_number=form.contact_number,
        area=form.area.value,
        date=form.date,
        times=form.time,
        remark=form.remark,
    )
