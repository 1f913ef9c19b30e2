"""Error taxonomy shared by the API client, the store and the reports service."""

from typing import Optional


class ApiError(Exception):
    """
    Raised for every failed call to the remote API.

    A non-2xx response carries its HTTP status code; a transport failure
    (DNS, refused connection, timeout) carries status code 0.
    """

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @property
    def is_network_error(self) -> bool:
        return self.status_code == 0

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    def __repr__(self) -> str:
        return f"<ApiError status_code={self.status_code} message={self.message!r}>"


class DomainError(Exception):
    """A business rule refused the operation."""


class StudentNotFoundError(DomainError):
    def __init__(self, student_id: str):
        super().__init__(f"Student {student_id} is not loaded")
        self.student_id = student_id


class StudentHasPaymentsError(DomainError):
    def __init__(self, student_id: str, payment_count: int):
        super().__init__(
            "Cannot permanently delete a student who still has payments. "
            "Delete all of the student's payments first."
        )
        self.student_id = student_id
        self.payment_count = payment_count


class PaymentNotFoundError(DomainError):
    def __init__(self, student_id: str, payment_id: str):
        super().__init__(f"Payment {payment_id} not found for student {student_id}")
        self.student_id = student_id
        self.payment_id = payment_id


class ReceiptDeletionError(DomainError):
    """The receipt of a confirmed payment could not be removed, so the payment stays."""

    def __init__(self, payment_id: str, status_code: Optional[int], message: str):
        if status_code is not None:
            text = f"Failed to delete receipt ({status_code}): {message}"
        else:
            text = "Failed to delete receipt. The receipt must be deleted before the payment."
        super().__init__(text)
        self.payment_id = payment_id
        self.status_code = status_code


class StoreError(Exception):
    """
    Raised by store and reports operations.

    The message is ready for display; the underlying error is chained as
    ``__cause__``.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
