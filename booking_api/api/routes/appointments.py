import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.api.deps import (
    get_current_admin,
    get_payment_gateway,
    get_session,
    get_settings,
    optional_bearer,
    require_admin,
)
from booking_api.api.schemas.appointment import (
    AppointmentCreate,
    AppointmentPublic,
    AppointmentUpdate,
    AttemptedUpdate,
    CreateOrderRequest,
    CreateOrderResponse,
    MessageResponse,
    VerifyPaymentRequest,
    check_date,
)
from booking_api.core.config import Settings
from booking_api.core.errors import ValidationError
from booking_api.services import booking_service
from booking_api.services.appointment_service import (
    delete_appointment,
    get_appointment,
    list_all_appointments,
    set_attempted,
    update_appointment,
)
from booking_api.services.payment_gateway import RazorpayClient
from booking_api.services.slot_service import get_booked_times

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("/create-order", response_model=CreateOrderResponse)
async def create_order(
    body: CreateOrderRequest,
    session: AsyncSession = Depends(get_session),
    gateway: RazorpayClient = Depends(get_payment_gateway),
    settings: Settings = Depends(get_settings),
) -> CreateOrderResponse:
    order_id = await booking_service.create_order(
        session,
        gateway,
        settings,
        amount=body.amount,
        currency=body.currency,
        slots=body.slots,
        date=body.date,
    )
    return CreateOrderResponse(order_id=order_id)


@router.post("/verify-payment", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def verify_payment(
    body: VerifyPaymentRequest,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> AppointmentPublic:
    appointment = await booking_service.verify_payment(
        session,
        settings,
        order_id=body.razorpay_order_id,
        payment_id=body.razorpay_payment_id,
        signature=body.razorpay_signature,
        form=body.form_data,
    )
    await session.commit()
    return AppointmentPublic.from_model(appointment)


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def book_without_payment(
    body: AppointmentCreate,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> AppointmentPublic:
    appointment = await booking_service.book_unpaid(session, settings, body)
    await session.commit()
    return AppointmentPublic.from_model(appointment)


@router.get("", response_model=list[str] | list[AppointmentPublic])
async def list_appointments(
    date: str | None = Query(None),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_bearer),
) -> list[str] | list[AppointmentPublic]:
    """
    With ``?date=YYYY-MM-DD``: public list of booked slot times for that date.
    Without: every appointment, admin only.
    """
    if date is not None:
        try:
            check_date(date)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        booked = await get_booked_times(session, date)
        logger.info("Fetched %d booked times for date: %s", len(booked), date)
        return booked
    require_admin(credentials, settings)
    appointments = await list_all_appointments(session)
    logger.info("Fetched %d appointments", len(appointments))
    return [AppointmentPublic.from_model(a) for a in appointments]


@router.get("/{appointment_id}", response_model=AppointmentPublic)
async def get_one(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    _admin: str = Depends(get_current_admin),
) -> AppointmentPublic:
    return AppointmentPublic.from_model(await get_appointment(session, appointment_id))


@router.put("/{appointment_id}", response_model=AppointmentPublic)
async def update_one(
    appointment_id: int,
    body: AppointmentUpdate,
    session: AsyncSession = Depends(get_session),
    _admin: str = Depends(get_current_admin),
) -> AppointmentPublic:
    appointment = await update_appointment(
        session,
        appointment_id,
        name=body.name,
        email=body.email,
        contact_number=body.contact_number,
        area=body.area.value,
        date=body.date,
        times=body.time,
        remark=body.remark,
    )
    await session.commit()
    return AppointmentPublic.from_model(appointment)


@router.patch("/{appointment_id}/attempted", response_model=AppointmentPublic)
async def update_attempted(
    appointment_id: int,
    body: AttemptedUpdate,
    session: AsyncSession = Depends(get_session),
    _admin: str = Depends(get_current_admin),
) -> AppointmentPublic:
    appointment = await set_attempted(session, appointment_id, body.attempted)
    await session.commit()
    return AppointmentPublic.from_model(appointment)


@router.delete("/{appointment_id}", response_model=MessageResponse)
async def delete_one(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    _admin: str = Depends(get_current_admin),
) -> MessageResponse:
    await delete_appointment(session, appointment_id)
    await session.commit()
    return MessageResponse(message="Appointment deleted successfully")
