from fastapi import HTTPException, status


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES: machine-readable constants for the admin frontend
# ═══════════════════════════════════════════════════════════════════════════════
class ErrorCode:
    VALIDATION_ERROR         = "VALIDATION_ERROR"
    BAD_REQUEST              = "BAD_REQUEST"
    UNAUTHORIZED             = "UNAUTHORIZED"
    INVALID_CREDENTIALS      = "INVALID_CREDENTIALS"
    INVALID_OR_EXPIRED_TOKEN = "INVALID_OR_EXPIRED_TOKEN"
    ROTATION_FAILED          = "ROTATION_FAILED"
    FORBIDDEN                = "FORBIDDEN"
    NOT_FOUND                = "NOT_FOUND"
    DUPLICATE_ENTRY          = "DUPLICATE_ENTRY"
    ACCOUNT_INACTIVE         = "ACCOUNT_INACTIVE"
    INVALID_FILE             = "INVALID_FILE"
    PERSISTENCE_FAILED       = "PERSISTENCE_FAILED"
    STORAGE_UNAVAILABLE      = "STORAGE_UNAVAILABLE"
    INTERNAL_SERVER_ERROR    = "INTERNAL_SERVER_ERROR"


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
        super().__init__(status_code=status_code, detail={
            "message": message,
            "error": {
                "code": error_code,
                "details": details,
                "field": field,
            }
        })


# ═══════════════════════════════════════════════════════════════════════════════
# CONCRETE EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════════

class BadRequestException(AppException):
    def __init__(self, message: str = "Bad request", field: str | None = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, ErrorCode.BAD_REQUEST, field=field)


class UnauthorizedException(AppException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, message, ErrorCode.UNAUTHORIZED)


class InvalidCredentialsException(AppException):
    def __init__(self):
        super().__init__(status.HTTP_401_UNAUTHORIZED, "Invalid email or password", ErrorCode.INVALID_CREDENTIALS)


class InvalidOrExpiredTokenException(AppException):
    # Shared by access-token verification and refresh-token lookup
    def __init__(self):
        super().__init__(status.HTTP_401_UNAUTHORIZED, "Invalid or expired token", ErrorCode.INVALID_OR_EXPIRED_TOKEN)


class RotationFailedException(AppException):
    def __init__(self):
        super().__init__(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Could not rotate the session, please login again",
            ErrorCode.ROTATION_FAILED,
        )


class ForbiddenException(AppException):
    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(status.HTTP_403_FORBIDDEN, message, ErrorCode.FORBIDDEN)


class NotFoundException(AppException):
    def __init__(self, resource: str = "Resource"):
        super().__init__(status.HTTP_404_NOT_FOUND, f"{resource} not found", ErrorCode.NOT_FOUND)


class DuplicateEntryException(AppException):
    def __init__(self, message: str = "Record already exists", field: str | None = None):
        super().__init__(status.HTTP_409_CONFLICT, message, ErrorCode.DUPLICATE_ENTRY, field=field)


class AccountInactiveException(AppException):
    def __init__(self):
        super().__init__(
            status.HTTP_403_FORBIDDEN,
            "Your account has been disabled. Contact an administrator.",
            ErrorCode.ACCOUNT_INACTIVE,
        )


class InvalidFileException(AppException):
    def __init__(self, message: str = "Invalid file", field: str | None = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, ErrorCode.INVALID_FILE, field=field)


class PersistenceFailedException(AppException):
    def __init__(self, message: str = "Could not save changes, please try again"):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, message, ErrorCode.PERSISTENCE_FAILED)


class StorageUnavailableException(AppException):
    def __init__(self, message: str = "File storage is unavailable, please try again later"):
        super().__init__(status.HTTP_502_BAD_GATEWAY, message, ErrorCode.STORAGE_UNAVAILABLE)
