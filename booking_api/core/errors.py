"""Booking error taxonomy.

Every error carries the HTTP status it maps to; the app-level handler in
``booking_api.main`` renders them as ``{"error": message}``.
"""
from fastapi import status


class BookingError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Required fields are missing"


class SlotConflictError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "One or more time slots are already booked"


class PaymentSignatureError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid payment signature"


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Appointment not found"


class AuthError(BookingError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Missing or invalid authorization header"


class ForbiddenError(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized"


class FeatureDisabledError(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "This feature is disabled"


class PaymentProviderError(BookingError):
    default_message = "Failed to create order"


class PaymentProviderTimeout(PaymentProviderError):
    """Provider did not answer in time; the client may retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Payment provider timed out, please retry"
