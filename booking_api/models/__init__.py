from booking_api.models.appointment import Appointment, AppointmentCreate, AppointmentSlot, Area, PaymentStatus

__all__ = [
    "Appointment",
    "AppointmentCreate",
    "AppointmentSlot",
    "Area",
    "PaymentStatus",
]
