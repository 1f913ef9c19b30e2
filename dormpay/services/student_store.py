"""Student Store - server-reconciled local state for students and their payments"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from dormpay.config import settings
from dormpay.core.exceptions import (
    ApiError,
    DomainError,
    PaymentNotFoundError,
    ReceiptDeletionError,
    StoreError,
    StudentHasPaymentsError,
    StudentNotFoundError,
)
from dormpay.models.enums import StudentStatus
from dormpay.schemas.payment import Payment, PaymentCreate
from dormpay.schemas.receipt import Receipt, ReceiptCreate
from dormpay.schemas.responses import OperationResult
from dormpay.schemas.student import Student, StudentCreate, StudentResponse
from dormpay.services.api_client import ApiClient
from dormpay.utils.receipts import generate_receipt_number
from dormpay.utils.time import get_utc_now, iso_day

logger = logging.getLogger(__name__)


def _failure_message(action: str, error: Exception) -> str:
    if isinstance(error, ApiError):
        return f"Failed to {action} ({error.status_code}): {error.message}"
    if isinstance(error, DomainError):
        return str(error)
    return f"Failed to {action}. Please try again."


class StudentStore:
    """
    Local copy of every loaded student, keyed by id.

    Each record's status (active or soft-deleted) follows its ``deleted_at``,
    and the active/deleted views are filtered from the one mapping, so a
    student can never sit in both. Local state changes only after the API
    has accepted the change; a failed operation leaves it as it was.
    """

    def __init__(
        self,
        api: ApiClient,
        clock: Callable[[], datetime] = get_utc_now,
        receipt_copy_type: Optional[str] = None,
    ):
        self._api = api
        self._clock = clock
        self._receipt_copy_type = receipt_copy_type or settings.RECEIPT_COPY_TYPE
        self._students: Dict[str, Student] = {}
        self.loading = False
        self.error: Optional[str] = None
        self.loaded = False

    # Lifecycle

    async def init(self) -> bool:
        return await self.load()

    async def teardown(self) -> None:
        self._students.clear()
        self.loading = False
        self.error = None
        self.loaded = False

    # Views

    @property
    def active_students(self) -> List[Student]:
        return [s for s in self._students.values() if s.status == StudentStatus.ACTIVE]

    @property
    def deleted_students(self) -> List[Student]:
        return [s for s in self._students.values() if s.status == StudentStatus.DELETED]

    def get_student(self, student_id: str) -> Optional[Student]:
        return self._students.get(student_id)

    def find_payment(self, student_id: str, payment_id: str) -> Optional[Payment]:
        student = self._students.get(student_id)
        return student.get_payment(payment_id) if student else None

    def _require_student(self, student_id: str) -> Student:
        student = self._students.get(student_id)
        if student is None:
            raise StudentNotFoundError(student_id)
        return student

    def _put(self, student: Student) -> None:
        """Insert or replace; a status change moves the record to the end of its new view."""
        existing = self._students.get(student.id)
        if existing is not None and existing.status != student.status:
            del self._students[student.id]
        self._students[student.id] = student

    @asynccontextmanager
    async def _operation(self, action: str) -> AsyncIterator[None]:
        self.loading = True
        self.error = None
        try:
            yield
        except Exception as e:
            message = _failure_message(action, e)
            self.error = message
            logger.error("Failed to %s: %s", action, e)
            raise StoreError(message, getattr(e, "status_code", None)) from e
        finally:
            self.loading = False

    # Assembly

    async def _assemble(
        self,
        api_student: StudentResponse,
        date_added: Optional[str] = None,
        known_payments: Optional[List[Payment]] = None,
    ) -> Student:
        """Attach payments to an API student. A failed payments fetch keeps ``known_payments``, else none."""
        try:
            payments = await self._api.list_student_payments(api_student.id)
        except (ApiError, ValidationError) as e:
            logger.warning("Failed to fetch payments for student %s: %s", api_student.id, e)
            payments = list(known_payments or [])
        return Student(
            **api_student.model_dump(exclude={"date_added"}),
            date_added=api_student.date_added or date_added or iso_day(self._clock()),
            payments=payments,
        )

    async def _assemble_all(self, api_students: List[StudentResponse]) -> List[Student]:
        return list(await asyncio.gather(*(self._assemble(s) for s in api_students)))

    # Operations

    async def load(self) -> bool:
        """
        Reload everything from the API.

        Returns False (and sets ``error``) when the active students cannot be
        loaded; previous state is kept in that case. A failure fetching the
        deleted students only empties the deleted view.
        """
        try:
            async with self._operation("load students"):
                active = await self._assemble_all(await self._api.list_students())

                deleted: List[Student] = []
                try:
                    deleted = await self._assemble_all(await self._api.list_deleted_students())
                except (ApiError, ValidationError) as e:
                    logger.warning("Failed to load deleted students: %s", e)

                students: Dict[str, Student] = {}
                for student in active:
                    students[student.id] = student.model_copy(update={"deleted_at": None})
                for student in deleted:
                    if student.id in students:
                        continue
                    if student.deleted_at is None:
                        student = student.model_copy(update={"deleted_at": self._clock()})
                    students[student.id] = student
                self._students = students
                self.loaded = True
        except StoreError:
            return False
        return True

    async def refresh(self) -> bool:
        return await self.load()

    async def add_student(self, data: StudentCreate) -> Student:
        async with self._operation("add student"):
            created = await self._api.create_student(data)
            student = await self._assemble(created)
            self._put(student.model_copy(update={"deleted_at": None}))
            return self._students[student.id]

    async def update_student(self, student: Student) -> Student:
        async with self._operation("update student"):
            current = self._require_student(student.id)
            response = await self._api.update_student(student.id, student.editable_fields())
            updated = await self._assemble(response, date_added=current.date_added, known_payments=current.payments)
            self._put(updated)
            return updated

    async def delete_student(self, student: Student) -> None:
        """Soft-delete an active student; permanently delete an already deleted one."""
        async with self._operation("delete student"):
            current = self._require_student(student.id)

            if current.status == StudentStatus.DELETED:
                if current.payments:
                    raise StudentHasPaymentsError(current.id, len(current.payments))
                await self._api.delete_student(current.id)
                del self._students[current.id]
                return

            deleted_at = await self._api.soft_delete_student(current.id) or self._clock()
            self._put(current.model_copy(update={"deleted_at": deleted_at}))

    async def restore_student(self, student: Student) -> Student:
        async with self._operation("restore student"):
            current = self._require_student(student.id)
            await self._api.restore_student(current.id)
            restored = current.model_copy(update={"deleted_at": None})
            self._put(restored)
            return restored

    async def add_payment(self, student_id: str, amount: float) -> Payment:
        async with self._operation("add payment"):
            student = self._students.get(student_id)
            if student is None or student.status != StudentStatus.ACTIVE:
                raise StudentNotFoundError(student_id)

            now = self._clock()
            payment = await self._api.create_payment(PaymentCreate(
                student_id=student_id,
                amount=amount,
                date=iso_day(now),
                month=str(now.month),
                year=now.year,
                confirmed=False,
            ))
            self._students[student_id] = student.model_copy(
                update={"payments": [*student.payments, payment]}
            )
            return payment

    async def confirm_payment(self, student_id: str, payment_id: str) -> OperationResult[Payment]:
        """
        Confirm a payment, then issue its receipt.

        The confirmation stands even if the receipt cannot be created; that
        failure comes back as a warning on the result.
        """
        async with self._operation("confirm payment"):
            student, payment = self._require_payment(student_id, payment_id)
            await self._api.confirm_payment(payment_id)

            warnings: List[str] = []
            try:
                await self._api.create_receipt(ReceiptCreate(
                    payment_id=payment_id,
                    receipt_no=generate_receipt_number(self._clock()),
                    copy_type=self._receipt_copy_type,
                ))
            except ApiError as e:
                logger.warning("Failed to create receipt for confirmed payment %s: %s", payment_id, e)
                warnings.append(f"Receipt could not be created ({e.status_code}): {e.message}")
            except ValidationError as e:
                logger.warning("Unexpected receipt response for payment %s: %s", payment_id, e)
                warnings.append("Receipt could not be created: unexpected response from the server")

            confirmed = payment.model_copy(update={"confirmed": True})
            self._replace_payments(student, [confirmed if p.id == payment_id else p for p in student.payments])
            return OperationResult[Payment](data=confirmed, warnings=warnings)

    async def delete_payment(self, student_id: str, payment_id: str) -> None:
        """
        Delete a payment, removing its receipt first when it is confirmed.

        A receipt that does not exist (404) does not block the deletion; any
        other receipt failure aborts it.
        """
        async with self._operation("delete payment"):
            student, payment = self._require_payment(student_id, payment_id)

            if payment.confirmed:
                await self._delete_receipt_for(payment_id)

            await self._api.delete_payment(payment_id)
            self._replace_payments(student, [p for p in student.payments if p.id != payment_id])

    async def get_receipt(self, payment_id: str) -> Optional[Receipt]:
        async with self._operation("fetch receipt"):
            return await self._api.get_receipt_by_payment(payment_id)

    # Helpers

    def _require_payment(self, student_id: str, payment_id: str) -> Tuple[Student, Payment]:
        student = self._require_student(student_id)
        payment = student.get_payment(payment_id)
        if payment is None:
            raise PaymentNotFoundError(student_id, payment_id)
        return student, payment

    def _replace_payments(self, student: Student, payments: List[Payment]) -> None:
        self._students[student.id] = student.model_copy(update={"payments": payments})

    async def _delete_receipt_for(self, payment_id: str) -> None:
        try:
            receipt = await self._api.get_receipt_by_payment(payment_id)
            if receipt and receipt.id:
                await self._api.delete_receipt(receipt.id)
        except ApiError as e:
            if e.is_not_found:
                logger.warning("No receipt found for payment %s, continuing with payment deletion", payment_id)
                return
            raise ReceiptDeletionError(payment_id, e.status_code, e.message) from e
        except ValidationError as e:
            raise ReceiptDeletionError(payment_id, None, str(e)) from e
