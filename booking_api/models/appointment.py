import re
from datetime import UTC, datetime
from datetime import date as date_type
from enum import Enum

import pydantic
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, text
from sqlmodel import Field, Relationship, SQLModel

_SLOT_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")
_PHONE_RE = re.compile(r"^\+\d{10,15}$")


def utc_now() -> datetime:
    """Aware UTC for TIMESTAMP WITH TIME ZONE columns."""
    return datetime.now(UTC)


def is_valid_slot(value: str) -> bool:
    """True for a 24-hour HH:MM string."""
    return isinstance(value, str) and bool(_SLOT_RE.match(value))


def check_date(value: str) -> str:
    """Validate a canonical YYYY-MM-DD string and return it unchanged."""
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise ValueError("Date must be a valid YYYY-MM-DD date")
    try:
        date_type.fromisoformat(value)
    except ValueError:
        raise ValueError("Date must be a valid YYYY-MM-DD date") from None
    return value


def check_slots(values: list[str]) -> list[str]:
    for v in values:
        if not is_valid_slot(v):
            raise ValueError(f"Invalid time slot: {v}")
    return sorted(set(values))


class Area(str, Enum):
    REMOTE = "Remote"
    OFFICE = "Office"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    id: int | None = Field(default=None, primary_key=True)
    name: str
    email: str
    contact_number: str
    area: str
    date: str = Field(index=True)  # YYYY-MM-DD
    remark: str | None = None
    payment_status: str | None = Field(default=None, index=True)
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    attempted: bool = False
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False)
    )

    slots: list["AppointmentSlot"] = Relationship(
        back_populates="appointment",
        sa_relationship_kwargs={
            "lazy": "selectin",
            "cascade": "all, delete-orphan",
            "order_by": "AppointmentSlot.time",
        },
    )

    @property
    def confirmed(self) -> bool:
        return self.payment_status == PaymentStatus.COMPLETED.value

    @property
    def times(self) -> list[str]:
        return [s.time for s in self.slots]


class AppointmentSlot(SQLModel, table=True):
    """One booked time value of an appointment.

    ``confirmed`` mirrors the owning appointment's payment status; the partial
    unique index allows at most one confirmed row per (date, time).
    """

    __tablename__ = "appointment_slots"
    __table_args__ = (
        Index("ix_appointment_slots_date_time", "date", "time"),
        Index(
            "uq_appointment_slots_confirmed_date_time",
            "date",
            "time",
            unique=True,
            postgresql_where=text("confirmed"),
            sqlite_where=text("confirmed"),
        ),
    )
    id: int | None = Field(default=None, primary_key=True)
    appointment_id: int | None = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    date: str
    time: str  # HH:MM
    confirmed: bool = False

    appointment: Appointment | None = Relationship(back_populates="slots")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class AppointmentCreate(CamelModel):
    """Customer-supplied appointment fields (the payment widget's ``formData``)."""

    name: str = pydantic.Field(min_length=1)
    email: str = pydantic.Field(min_length=1)
    contact_number: str = pydantic.Field(min_length=1)
    area: Area
    date: str
    time: list[str] = pydantic.Field(min_length=1)
    remark: str | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        if not _EMAIL_RE.match(v):
            raise ValueError("Please enter a valid email")
        return v

    @field_validator("contact_number")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not _PHONE_RE.match(v):
            raise ValueError("Please enter a valid contact number")
        return v

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        return check_date(v)

    @field_validator("time", mode="before")
    @classmethod
    def coerce_single_time(cls, v):
        # Older clients send a single slot string
        return [v] if isinstance(v, str) else v

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: list[str]) -> list[str]:
        return check_slots(v)
