from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server error"


class HerbalGardenException(Exception):
    """Base exception class for the Virtual Herbal Garden backend"""

    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(HerbalGardenException):
    """Missing or malformed input"""

    def __init__(self, message: str = "Validation failed", details: dict = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class AuthenticationError(HerbalGardenException):
    """Missing or unusable session token"""

    def __init__(self, message: str = "Unauthorized", details: dict = None):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, details)


class AuthorizationError(HerbalGardenException):
    """Authenticated, but the role does not allow the action"""

    def __init__(self, message: str = "Forbidden", details: dict = None):
        super().__init__(message, status.HTTP_403_FORBIDDEN, details)


class NotFoundError(HerbalGardenException):
    """Resource not found errors"""

    def __init__(self, message: str = "Resource not found", details: dict = None,
                 status_code: int = status.HTTP_404_NOT_FOUND):
        super().__init__(message, status_code, details)


class ConflictError(HerbalGardenException):
    """Resource conflict errors"""

    def __init__(self, message: str = "Resource conflict", details: dict = None):
        super().__init__(message, status.HTTP_409_CONFLICT, details)


class DeliveryFailedError(HerbalGardenException):
    """OTP email could not be delivered"""

    def __init__(self, message: str = "Failed to send OTP email", details: dict = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


class StorageUnavailableError(HerbalGardenException):
    """Connection pool exhausted or database unreachable"""

    def __init__(self, message: str = "Storage unavailable", details: dict = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


# Auth flow exceptions
class DuplicateEmailError(ValidationError):
    def __init__(self):
        super().__init__("Email already exists")


class InvalidCredentialsError(ValidationError):
    """Same message whether the email is unknown or the password is wrong"""

    def __init__(self):
        super().__init__("Invalid email or password")


class UserNotFoundError(NotFoundError):
    """Unknown email on the auth endpoints, reported as a 400"""

    def __init__(self, message: str = "User not found"):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class InvalidOrExpiredOtpError(ValidationError):
    def __init__(self):
        super().__init__("Invalid or expired OTP")


class PasswordMismatchError(ValidationError):
    def __init__(self):
        super().__init__("Passwords do not match")


class InvalidTokenError(AuthenticationError):
    """Invalid, malformed or expired session token"""

    def __init__(self):
        super().__init__("Invalid or expired token")


def error_body(message: str, errors: list = None) -> dict:
    return {
        "success": False,
        "message": message,
        "errors": errors if errors is not None else [message],
    }


# Exception handlers
async def herbal_garden_exception_handler(request: Request, exc: HerbalGardenException):
    """Handle application exceptions; 5xx details stay in the server log"""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(f"{type(exc).__name__}: {exc.message}", extra={
        "status_code": exc.status_code,
        "details": exc.details,
        "path": request.url.path,
        "method": request.method
    })

    message = SERVER_ERROR_MESSAGE if exc.status_code >= 500 else exc.message
    return JSONResponse(status_code=exc.status_code, content=error_body(message))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors"""
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append(f"{field}: {error['msg']}")

    logger.warning(f"Validation Error: {errors}", extra={
        "path": request.url.path,
        "method": request.method
    })

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation failed", errors)
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle FastAPI and Starlette HTTP exceptions"""
    logger.warning(f"HTTP Exception: {exc.detail}", extra={
        "status_code": exc.status_code,
        "path": request.url.path,
        "method": request.method
    })

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None)
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle database exceptions"""
    if isinstance(exc, (OperationalError, PoolTimeoutError)):
        return await herbal_garden_exception_handler(
            request, StorageUnavailableError(details={"error": str(exc)})
        )

    logger.error(f"Database Error: {exc}", extra={
        "path": request.url.path,
        "method": request.method
    })

    if isinstance(exc, IntegrityError):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=error_body("Resource already exists")
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(SERVER_ERROR_MESSAGE)
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions"""
    logger.error(f"Unhandled Exception: {exc}", extra={
        "exception_type": type(exc).__name__,
        "path": request.url.path,
        "method": request.method
    }, exc_info=exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(SERVER_ERROR_MESSAGE)
    )


# Exception mapping for FastAPI app
EXCEPTION_HANDLERS = {
    HerbalGardenException: herbal_garden_exception_handler,
    RequestValidationError: validation_exception_handler,
    HTTPException: http_exception_handler,
    StarletteHTTPException: http_exception_handler,
    SQLAlchemyError: database_exception_handler,
    Exception: general_exception_handler,
}
