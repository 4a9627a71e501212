from fastapi import HTTPException, status


class BookingError(Exception):
    """Base class for errors the booking domain reports to callers"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "An internal server error occurred"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_http(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.message)


class ValidationError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class PermissionDenied(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized to access this resource"


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(BookingError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "This time slot is no longer available. Please select another time."


class InternalError(BookingError):
    pass
