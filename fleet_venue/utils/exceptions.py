from fastapi import HTTPException, status


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES: machine-readable constants for frontend switch/case
# ═══════════════════════════════════════════════════════════════════════════════
class ErrorCode:
    VALIDATION_ERROR      = "VALIDATION_ERROR"
    UNAUTHORIZED          = "UNAUTHORIZED"
    TOKEN_EXPIRED         = "TOKEN_EXPIRED"
    SESSION_EXPIRED       = "SESSION_EXPIRED"
    SESSION_ACTIVE        = "SESSION_ACTIVE"
    ACCOUNT_INACTIVE      = "ACCOUNT_INACTIVE"
    ACCOUNT_LOCKED        = "ACCOUNT_LOCKED"
    FORBIDDEN             = "FORBIDDEN"
    MODULE_REQUIRED       = "MODULE_REQUIRED"
    NOT_FOUND             = "NOT_FOUND"
    DUPLICATE_ENTRY       = "DUPLICATE_ENTRY"
    BOOKING_CONFLICT      = "BOOKING_CONFLICT"
    RESOURCE_IN_USE       = "RESOURCE_IN_USE"
    LICENSE_IN_USE        = "LICENSE_IN_USE"
    INVALID_TRANSITION    = "INVALID_TRANSITION"
    INVALID_LICENSE       = "INVALID_LICENSE"
    INVALID_ODOMETER      = "INVALID_ODOMETER"
    INVALID_DATE_RANGE    = "INVALID_DATE_RANGE"
    BOOKING_NOT_PENDING   = "BOOKING_NOT_PENDING"
    PAYMENT_REQUIRED      = "PAYMENT_REQUIRED"
    RESOURCE_UNAVAILABLE  = "RESOURCE_UNAVAILABLE"
    STORE_ERROR           = "STORE_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


# ═══════════════════════════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════════════════════════
class AppException(HTTPException):
    """
    Base exception for all application-level errors.
    Carries a machine-readable error_code for frontend handling.
    """
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: str,
        details: list | None = None,
        field: str | None = None,
    ):
        self.error_code = error_code
        self.message = message
        self.details = details
        super().__init__(status_code=status_code, detail={
            "message": message,
            "error": {
                "code": error_code,
                "details": details,
                "field": field,
            }
        })


# ═══════════════════════════════════════════════════════════════════════════════
# VALIDATION / AUTH
# ═══════════════════════════════════════════════════════════════════════════════

class ValidationException(AppException):
    def __init__(self, message: str, field: str | None = None, details: list | None = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, ErrorCode.VALIDATION_ERROR,
                         details=details, field=field)


class InvalidDateRangeException(AppException):
    def __init__(self, message: str = "End must be after start"):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, ErrorCode.INVALID_DATE_RANGE)


class UnauthorizedException(AppException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, message, ErrorCode.UNAUTHORIZED)


class TokenExpiredException(AppException):
    def __init__(self):
        super().__init__(status.HTTP_401_UNAUTHORIZED, "Access token has expired", ErrorCode.TOKEN_EXPIRED)


class SessionExpiredException(AppException):
    def __init__(self):
        super().__init__(status.HTTP_401_UNAUTHORIZED,
                         "Session has expired or was closed, please login again",
                         ErrorCode.SESSION_EXPIRED)


class SessionActiveException(AppException):
    def __init__(self):
        super().__init__(status.HTTP_403_FORBIDDEN,
                         "This account already has an active session",
                         ErrorCode.SESSION_ACTIVE)


class ForbiddenException(AppException):
    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(status.HTTP_403_FORBIDDEN, message, ErrorCode.FORBIDDEN)


class ModuleRequiredException(AppException):
    def __init__(self, modules: list[str]):
        super().__init__(status.HTTP_403_FORBIDDEN,
                         f"Access to this module is not granted: {', '.join(modules)}",
                         ErrorCode.MODULE_REQUIRED, details=list(modules))


class AccountInactiveException(AppException):
    def __init__(self):
        super().__init__(status.HTTP_403_FORBIDDEN,
                         "Your account has been deactivated. Contact admin.",
                         ErrorCode.ACCOUNT_INACTIVE)


class AccountLockedException(AppException):
    def __init__(self):
        super().__init__(status.HTTP_403_FORBIDDEN,
                         "Account locked after too many failed login attempts. Contact admin.",
                         ErrorCode.ACCOUNT_LOCKED)


# ═══════════════════════════════════════════════════════════════════════════════
# NOT FOUND / CONFLICT
# ═══════════════════════════════════════════════════════════════════════════════

class NotFoundException(AppException):
    def __init__(self, resource: str = "Resource"):
        super().__init__(status.HTTP_404_NOT_FOUND, f"{resource} not found", ErrorCode.NOT_FOUND)


class DuplicateEntryException(AppException):
    def __init__(self, message: str = "Record already exists", field: str | None = None):
        super().__init__(status.HTTP_409_CONFLICT, message, ErrorCode.DUPLICATE_ENTRY, field=field)


class BookingConflictException(AppException):
    """409 carrying every overlapping booking in error.details."""
    def __init__(self, conflicts: list[dict] | None = None):
        self.conflicts = conflicts or []
        super().__init__(
            status.HTTP_409_CONFLICT,
            "Resource is already booked for the requested time range",
            ErrorCode.BOOKING_CONFLICT,
            details=self.conflicts,
        )


class ResourceInUseException(AppException):
    def __init__(self, message: str, error_code: str = ErrorCode.RESOURCE_IN_USE):
        super().__init__(status.HTTP_409_CONFLICT, message, error_code)


# ═══════════════════════════════════════════════════════════════════════════════
# STATE ERRORS: lifecycle guards, all 400
# ═══════════════════════════════════════════════════════════════════════════════

class StateException(AppException):
    def __init__(self, message: str, error_code: str):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, error_code)


class InvalidTransitionException(StateException):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move from {current} to {target}", ErrorCode.INVALID_TRANSITION)


class InvalidLicenseException(StateException):
    def __init__(self, message: str = "Driver has no valid, unexpired license"):
        super().__init__(message, ErrorCode.INVALID_LICENSE)


class InvalidOdometerException(StateException):
    def __init__(self, start: int, end: int):
        super().__init__(
            f"End odometer ({end}) must be greater than start odometer ({start})",
            ErrorCode.INVALID_ODOMETER,
        )


class BookingNotPendingException(StateException):
    def __init__(self, current: str | None = None):
        message = "Booking must be in PENDING status to perform this action"
        if current:
            message += f" (current: {current})"
        super().__init__(message, ErrorCode.BOOKING_NOT_PENDING)


class PaymentRequiredException(StateException):
    def __init__(self):
        super().__init__("A payment must be registered before authorizing this reservation",
                         ErrorCode.PAYMENT_REQUIRED)


class ResourceUnavailableException(StateException):
    def __init__(self, message: str = "Resource is not available (MAINTENANCE or INACTIVE)"):
        super().__init__(message, ErrorCode.RESOURCE_UNAVAILABLE)
