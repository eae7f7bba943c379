"""Error taxonomy shared by the booking core and the HTTP layer."""


class BookingError(Exception):
    """Base class; ``status_code`` and ``code`` are what callers see."""

    status_code = 500
    default_message = "Booking operation failed"

    def __init__(self, message=None, code=None):
        self.message = message or self.default_message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self):
        return {"error": self.message, "code": self.code}


class ValidationError(BookingError):
    status_code = 400
    default_message = "Invalid input"


class AccessDenied(BookingError):
    status_code = 403
    default_message = "Access denied"


class NotFound(BookingError):
    status_code = 404
    default_message = "Not found"


class Conflict(BookingError):
    status_code = 409
    default_message = "Conflict"


# ---------- not found ----------
class BookingNotFound(NotFound):
    default_message = "Booking not found"


class ServiceNotFound(NotFound):
    default_message = "Service not found"


class BusinessNotFound(NotFound):
    default_message = "Business not found"


class SlotNotFound(NotFound):
    default_message = "Time slot not found"


# ---------- conflicts ----------
class SlotUnavailable(Conflict):
    default_message = "Time slot is not available"


class SlotBooked(Conflict):
    default_message = "Cannot delete booked time slot"


class SlotOverlap(Conflict):
    default_message = "Time slot overlaps with existing slot"


class AlreadyCancelled(Conflict):
    default_message = "Booking is already cancelled"


class BookingNotCancellable(Conflict):
    default_message = "Booking can no longer be cancelled"


class BookingNotCompletable(Conflict):
    default_message = "Booking cannot be marked as completed"


class DuplicateReview(Conflict):
    default_message = "Review already submitted for this booking"


class PaymentConflict(Conflict):
    default_message = "Payment cannot be initialised for this booking"


class PaymentProviderError(BookingError):
    status_code = 502
    default_message = "Payment provider unavailable"
