from typing import Any, Dict, Optional, Union

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from codejudge.config import logger


# Custom exceptions
class AppException(Exception):
    """Base exception for application-specific errors."""

    def __init__(self, status_code: int, detail: Union[str, Dict[str, Any]]):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class DatabaseException(AppException):
    """Exception for database-related errors."""

    def __init__(self, detail: str = "Database error occurred"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail
        )


class AuthenticationException(AppException):
    """Exception for authentication-related errors."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class ResourceNotFoundException(AppException):
    """Exception for resource not found errors."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ValidationException(AppException):
    """Exception for validation errors."""

    def __init__(self, detail: Union[str, Dict[str, Any]] = "Validation error"):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail
        )


class BadRequestException(AppException):
    """Exception for bad request errors."""

    def __init__(self, detail: Union[str, Dict[str, Any]] = "Bad request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UnsupportedLanguageError(BadRequestException):
    """The requested language is not in the fixed runtime table."""

    def __init__(self, language: str):
        super().__init__(detail=f"Unsupported language: {language}")
        self.language = language


class EmptyTestSuiteError(ValidationException):
    """A program was submitted for testing without any test case."""

    def __init__(self, detail: str = "At least one test case is required"):
        super().__init__(detail=detail)


class SubmissionStateException(AppException):
    """A submission was moved outside pending -> completed | failed."""

    def __init__(self, detail: str = "Submission has already been graded"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class GradingFault(AppException):
    """
    Infrastructure-level grading failure.

    Distinct from the student's code failing: a grading fault marks the
    submission ``failed`` instead of ``completed``.
    """

    def __init__(
        self,
        detail: Union[str, Dict[str, Any]] = "Grading failed",
        submission_id: Optional[int] = None,
    ):
        if submission_id is not None and isinstance(detail, str):
            detail = {"message": detail, "submission_id": submission_id}
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail
        )
        self.submission_id = submission_id


class SandboxError(GradingFault):
    """The sandbox could not write the source or spawn the process."""

    def __init__(self, detail: str = "Sandbox infrastructure error"):
        super().__init__(detail=detail)


class UnsupportedInputError(GradingFault):
    """A test case input cannot be marshalled for the target language."""

    def __init__(self, detail: str = "Test case input cannot be encoded"):
        super().__init__(detail=detail)


class AdvisoryUnavailable(AppException):
    """The external text-generation service failed or is not configured."""

    def __init__(self, detail: str = "Advisory service unavailable"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail
        )


class ExecutionFault(Exception):
    """
    Code-level failure of one sandboxed run: compile error, runtime
    exception, non-zero exit, timeout or resource-limit violation.

    Recorded per test case; never escapes the test case runner.
    """

    def __init__(self, status: Any, message: str, limit_exceeded: bool = False):
        super().__init__(message)
        self.status = status
        self.message = message
        self.limit_exceeded = limit_exceeded


# Exception handlers
async def app_exception_handler(request: Request, exc: AppException):
    """Handler for application-specific exceptions."""
    logger.error(f"Application error: {exc.detail} (Status: {exc.status_code})")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    formatted_errors = [
        {
            "type": error["type"],
            "loc": error["loc"],
            "msg": error["msg"],
        }
        for error in exc.errors()
    ]

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": formatted_errors},
    )


async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
    """Handler for Pydantic validation errors."""
    errors = exc.errors(include_url=False, include_context=False)
    logger.error(f"Pydantic validation error: {errors}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": errors},
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handler for SQLAlchemy errors."""
    logger.error(f"Database error: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Database error occurred. Please try again later."},
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handler for all other exceptions."""
    logger.error(f"Unexpected error: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred. Please try again later."},
    )


# Function to register exception handlers with FastAPI app
def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI application."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, pydantic_validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")
