"""Remote API Client - typed wrapper over the dormitory payments REST API"""

import logging
from datetime import datetime
from typing import Any, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from dormpay.config import settings
from dormpay.core.exceptions import ApiError
from dormpay.schemas.payment import Payment, PaymentCreate
from dormpay.schemas.receipt import Receipt, ReceiptCreate
from dormpay.schemas.report import ReportsSummary
from dormpay.schemas.student import StudentCreate, StudentResponse, StudentUpdate

logger = logging.getLogger(__name__)

_timestamp = TypeAdapter(datetime)


class ApiClient:
    """
    One coroutine per resource/verb pair.

    Every call either returns the parsed body or raises ApiError. Empty
    bodies (204, content-length 0) and non-JSON bodies resolve to None.
    No retries happen here.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> Any:
        logger.debug("%s %s", method, path, extra={"method": method})
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e, extra={"method": method, "status_code": 0})
            raise ApiError(0, f"Network error: {str(e) or type(e).__name__}") from e

        if not response.is_success:
            message = _error_message(response)
            logger.warning(
                "%s %s returned %s: %s",
                method,
                path,
                response.status_code,
                message,
                extra={"method": method, "status_code": response.status_code},
            )
            raise ApiError(response.status_code, message)

        if response.status_code == 204 or response.headers.get("content-length") == "0" or not response.content:
            return None

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            # Plain-text success markers ("Payment confirmed") carry no data
            return None

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(response.status_code, f"Invalid JSON response: {e}") from e

    # Students

    async def list_students(self) -> List[StudentResponse]:
        """Active students (no deletedAt)."""
        data = await self._request("GET", "/students")
        return [StudentResponse.model_validate(item) for item in data or []]

    async def list_deleted_students(self) -> List[StudentResponse]:
        """Soft-deleted students (with deletedAt)."""
        data = await self._request("GET", "/students/deleted")
        return [StudentResponse.model_validate(item) for item in data or []]

    async def get_student(self, student_id: str) -> Optional[StudentResponse]:
        data = await self._request("GET", f"/students/{student_id}")
        return StudentResponse.model_validate(data) if data else None

    async def create_student(self, data: StudentCreate) -> StudentResponse:
        body = await self._request("POST", "/students", json=data.to_api())
        return StudentResponse.model_validate(body)

    async def update_student(self, student_id: str, data: StudentUpdate) -> StudentResponse:
        body = await self._request("PATCH", f"/students/{student_id}", json=data.to_api())
        return StudentResponse.model_validate(body)

    async def soft_delete_student(self, student_id: str) -> Optional[datetime]:
        """
        Mark a student deleted. Returns the server's ``deletedAt`` when the
        body carries a readable one; any other body is just a success marker.
        """
        body = await self._request("PATCH", f"/students/{student_id}/deleted-at")
        if not isinstance(body, dict) or not body.get("deletedAt"):
            return None
        try:
            return _timestamp.validate_python(body["deletedAt"])
        except ValidationError:
            logger.warning("Ignoring unreadable deletedAt for student %s: %r", student_id, body["deletedAt"])
            return None

    async def restore_student(self, student_id: str) -> None:
        """The response body is a success marker only."""
        await self._request("PATCH", f"/students/{student_id}/restore")

    async def delete_student(self, student_id: str) -> None:
        """Permanent delete; the API answers with a plain-text marker."""
        await self._request("DELETE", f"/students/{student_id}")

    # Payments

    async def list_student_payments(self, student_id: str) -> List[Payment]:
        data = await self._request("GET", f"/students/{student_id}/payments")
        return [Payment.model_validate(item) for item in data or []]

    async def create_payment(self, data: PaymentCreate) -> Payment:
        body = await self._request("POST", "/payments", json=data.to_api())
        return Payment.model_validate(body)

    async def confirm_payment(self, payment_id: str) -> None:
        await self._request("PATCH", f"/payments/{payment_id}/confirm")

    async def delete_payment(self, payment_id: str) -> None:
        await self._request("DELETE", f"/payments/{payment_id}")

    # Receipts

    async def create_receipt(self, data: ReceiptCreate) -> Optional[Receipt]:
        body = await self._request("POST", "/receipts", json=data.to_api())
        return Receipt.model_validate(body) if body else None

    async def get_receipt_by_payment(self, payment_id: str) -> Optional[Receipt]:
        body = await self._request("GET", f"/payments/{payment_id}/receipt")
        return Receipt.model_validate(body) if body else None

    async def get_receipt(self, receipt_id: str) -> Optional[Receipt]:
        body = await self._request("GET", f"/receipts/{receipt_id}")
        return Receipt.model_validate(body) if body else None

    async def delete_receipt(self, receipt_id: str) -> None:
        await self._request("DELETE", f"/receipts/{receipt_id}")

    # Reports

    async def get_reports_summary(self) -> ReportsSummary:
        body = await self._request("GET", "/reports/summary")
        return ReportsSummary.model_validate(body or {})


def _error_message(response: httpx.Response) -> str:
    """`message` or `error` from a JSON error body, else the HTTP status line."""
    fallback = f"HTTP {response.status_code}: {response.reason_phrase}"
    try:
        payload = response.json()
    except ValueError:
        return fallback
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error")
        if isinstance(message, str) and message:
            return message
    return fallback
