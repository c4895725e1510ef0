from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator

from booking_api.models.appointment import Appointment, AppointmentCreate, CamelModel, check_date, check_slots


class SlotInfo(BaseModel):
    time: str  # HH:MM
    available: bool


class AvailableSlotsResponse(BaseModel):
    date: str  # YYYY-MM-DD
    slots: list[SlotInfo]


class AppointmentUpdate(AppointmentCreate):
    pass


class AttemptedUpdate(BaseModel):
    attempted: StrictBool


class CreateOrderRequest(CamelModel):
    amount: int = Field(gt=0)
    currency: str = Field(min_length=1)
    slots: list[str] = Field(min_length=1)
    date: str

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        return check_date(v)

    @field_validator("slots")
    @classmethod
    def validate_slots(cls, v: list[str]) -> list[str]:
        return check_slots(v)


class CreateOrderResponse(CamelModel):
    order_id: str


class VerifyPaymentRequest(BaseModel):
    # Field names are fixed by the Razorpay checkout callback
    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)
    form_data: AppointmentCreate = Field(alias="formData")

    model_config = ConfigDict(populate_by_name=True)


class AppointmentPublic(CamelModel):
    id: int
    name: str
    email: str
    contact_number: str
    area: str
    date: str
    time: list[str]
    remark: str | None = None
    payment_status: str | None = None
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    attempted: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, a: Appointment) -> "AppointmentPublic":
        return cls(
            id=a.id,
            name=a.name,
            email=a.email,
            contact_number=a.contact_number,
            area=a.area,
            date=a.date,
            time=a.times,
            remark=a.remark,
            payment_status=a.payment_status,
            razorpay_order_id=a.razorpay_order_id,
            razorpay_payment_id=a.razorpay_payment_id,
            attempted=a.attempted,
            created_at=a.created_at,
            updated_at=a.updated_at,
        )


class MessageResponse(BaseModel):
    message: str
