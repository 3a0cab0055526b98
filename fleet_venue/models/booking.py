import enum


class BookingStatus(str, enum.Enum):
    """Shared status set for vehicle assignments and room reservations."""
    PENDING    = "PENDING"
    AUTHORIZED = "AUTHORIZED"
    ACTIVE     = "ACTIVE"
    FINALIZED  = "FINALIZED"
    CANCELLED  = "CANCELLED"


# Bookings in these states hold their window on the resource
NON_TERMINAL_STATUSES = (BookingStatus.PENDING, BookingStatus.AUTHORIZED, BookingStatus.ACTIVE)
TERMINAL_STATUSES     = (BookingStatus.FINALIZED, BookingStatus.CANCELLED)
