"""Shared pytest fixtures: an in-memory REST backend served through httpx.MockTransport."""

import json
import re
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from dormpay.services.api_client import ApiClient
from dormpay.services.reports_service import ReportsService
from dormpay.services.student_store import StudentStore

NOW = datetime(2024, 3, 20, 10, 30, 0, 123000)
SOFT_DELETED_AT = "2024-03-20T10:30:00Z"


class FakeBackend:
    """
    Minimal stand-in for the payments API.

    Students, payments and receipts live in dicts using the API's camelCase
    JSON. ``fail`` and ``fail_network`` make a given method+path misbehave;
    ``reply_with`` keeps a route's effect but swaps the body it answers with;
    ``calls`` records every request in order.
    """

    def __init__(self):
        self.students: Dict[str, dict] = {}
        self.payments: Dict[str, dict] = {}
        self.receipts: Dict[str, dict] = {}
        self.summary: dict = {
            "totalStudents": 3,
            "activeStudents": 2,
            "inactiveStudents": 1,
            "totalPayments": 4500,
            "monthlyPayments": 1500,
            "monthlyActiveCount": 2,
        }
        self.calls: List[Tuple[str, str]] = []
        self._failures: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self._network_failures: set = set()
        self._replies: Dict[Tuple[str, str], Any] = {}
        self._routes = [
            ("GET", r"/students", self._list_students),
            ("GET", r"/students/deleted", self._list_deleted),
            ("GET", r"/students/(?P<sid>[^/]+)/payments", self._list_payments),
            ("GET", r"/students/(?P<sid>[^/]+)", self._get_student),
            ("POST", r"/students", self._create_student),
            ("PATCH", r"/students/(?P<sid>[^/]+)/deleted-at", self._soft_delete),
            ("PATCH", r"/students/(?P<sid>[^/]+)/restore", self._restore),
            ("PATCH", r"/students/(?P<sid>[^/]+)", self._update_student),
            ("DELETE", r"/students/(?P<sid>[^/]+)", self._delete_student),
            ("POST", r"/payments", self._create_payment),
            ("PATCH", r"/payments/(?P<pid>[^/]+)/confirm", self._confirm_payment),
            ("DELETE", r"/payments/(?P<pid>[^/]+)", self._delete_payment),
            ("GET", r"/payments/(?P<pid>[^/]+)/receipt", self._receipt_for_payment),
            ("POST", r"/receipts", self._create_receipt),
            ("GET", r"/receipts/(?P<rid>[^/]+)", self._get_receipt),
            ("DELETE", r"/receipts/(?P<rid>[^/]+)", self._delete_receipt),
            ("GET", r"/reports/summary", self._reports_summary),
        ]

    # Seeding

    def seed_student(
        self,
        name: str = "Ahmed Ali",
        department: str = "Engineering",
        room_number: str = "101",
        floor_number: str = "1",
        date_added: Optional[str] = "2024-01-15",
        deleted: bool = False,
    ) -> str:
        sid = f"s-{uuid.uuid4().hex[:8]}"
        self.students[sid] = {
            "id": sid,
            "name": name,
            "department": department,
            "studyLevel": "Bachelor",
            "birthPlace": "Khartoum",
            "roomNumber": room_number,
            "floorNumber": floor_number,
            "dateAdded": date_added,
            "deletedAt": SOFT_DELETED_AT if deleted else None,
        }
        return sid

    def seed_payment(
        self,
        student_id: str,
        amount: float = 500,
        date: str = "2024-03-05",
        month: str = "3",
        year: int = 2024,
        confirmed: bool = False,
        with_receipt: bool = False,
    ) -> str:
        pid = f"p-{uuid.uuid4().hex[:8]}"
        self.payments[pid] = {
            "id": pid,
            "studentId": student_id,
            "amount": amount,
            "date": date,
            "month": month,
            "year": year,
            "confirmed": confirmed,
        }
        if with_receipt:
            rid = f"r-{uuid.uuid4().hex[:8]}"
            self.receipts[rid] = {"id": rid, "paymentId": pid, "receiptNo": "REC-20240305001", "copyType": "student"}
        return pid

    def fail(self, method: str, path: str, status_code: int, body: Any = None) -> None:
        self._failures[(method, path)] = (status_code, body)

    def fail_network(self, method: str, path: str) -> None:
        self._network_failures.add((method, path))

    def reply_with(self, method: str, path: str, body: Any) -> None:
        self._replies[(method, path)] = body

    def called(self, method: str, path: str) -> bool:
        return (method, path) in self.calls

    def receipt_for(self, payment_id: str) -> Optional[dict]:
        return next((r for r in self.receipts.values() if r["paymentId"] == payment_id), None)

    # Transport

    def handler(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        self.calls.append((method, path))
        if (method, path) in self._network_failures:
            raise httpx.ConnectError("Connection refused", request=request)
        if (method, path) in self._failures:
            status_code, body = self._failures[(method, path)]
            if body is None:
                return httpx.Response(status_code, text="Internal error")
            return httpx.Response(status_code, json=body)
        for route_method, pattern, view in self._routes:
            match = re.fullmatch(pattern, path)
            if route_method == method and match:
                body = json.loads(request.content) if request.content else None
                response = view(body=body, **match.groupdict())
                if response.is_success and (method, path) in self._replies:
                    return httpx.Response(response.status_code, json=self._replies[(method, path)])
                return response
        return httpx.Response(404, json={"message": "Route not found"})

    # Views

    def _list_students(self, body):
        return httpx.Response(200, json=[s for s in self.students.values() if not s["deletedAt"]])

    def _list_deleted(self, body):
        return httpx.Response(200, json=[s for s in self.students.values() if s["deletedAt"]])

    def _get_student(self, body, sid):
        if sid not in self.students:
            return httpx.Response(404, json={"message": "Student not found"})
        return httpx.Response(200, json=self.students[sid])

    def _create_student(self, body):
        sid = self.seed_student(
            name=body["name"],
            department=body["department"],
            room_number=body["roomNumber"],
            floor_number=body["floorNumber"],
            date_added="2024-03-20",
        )
        self.students[sid].update(studyLevel=body["studyLevel"], birthPlace=body["birthPlace"])
        return httpx.Response(201, json=self.students[sid])

    def _update_student(self, body, sid):
        if sid not in self.students:
            return httpx.Response(404, json={"error": "Student not found"})
        self.students[sid].update(body)
        return httpx.Response(200, json=self.students[sid])

    def _soft_delete(self, body, sid):
        self.students[sid]["deletedAt"] = SOFT_DELETED_AT
        return httpx.Response(200, json=self.students[sid])

    def _restore(self, body, sid):
        self.students[sid]["deletedAt"] = None
        return httpx.Response(200, json=self.students[sid])

    def _delete_student(self, body, sid):
        self.students.pop(sid, None)
        return httpx.Response(200, text="Student deleted permanently")

    def _list_payments(self, body, sid):
        return httpx.Response(200, json=[p for p in self.payments.values() if p["studentId"] == sid])

    def _create_payment(self, body):
        pid = self.seed_payment(
            body["studentId"],
            amount=body["amount"],
            date=body["date"],
            month=body["month"],
            year=body["year"],
            confirmed=body["confirmed"],
        )
        return httpx.Response(201, json=self.payments[pid])

    def _confirm_payment(self, body, pid):
        self.payments[pid]["confirmed"] = True
        return httpx.Response(200, text="Payment confirmed")

    def _delete_payment(self, body, pid):
        self.payments.pop(pid, None)
        return httpx.Response(204)

    def _receipt_for_payment(self, body, pid):
        receipt = self.receipt_for(pid)
        if receipt is None:
            return httpx.Response(404, json={"message": "Receipt not found"})
        return httpx.Response(200, json=receipt)

    def _create_receipt(self, body):
        rid = f"r-{uuid.uuid4().hex[:8]}"
        self.receipts[rid] = {"id": rid, **body}
        return httpx.Response(201, json=self.receipts[rid])

    def _get_receipt(self, body, rid):
        if rid not in self.receipts:
            return httpx.Response(404, json={"message": "Receipt not found"})
        return httpx.Response(200, json=self.receipts[rid])

    def _delete_receipt(self, body, rid):
        self.receipts.pop(rid, None)
        return httpx.Response(200, text="Receipt deleted")

    def _reports_summary(self, body):
        return httpx.Response(200, json=self.summary)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def api_client(backend: FakeBackend):
    """API client wired to the fake backend."""
    client = ApiClient(base_url="http://test", transport=httpx.MockTransport(backend.handler))
    yield client
    await client.aclose()


@pytest.fixture
def store(api_client: ApiClient, now: datetime) -> StudentStore:
    return StudentStore(api_client, clock=lambda: now)


@pytest.fixture
def reports(api_client: ApiClient, now: datetime) -> ReportsService:
    return ReportsService(api_client, clock=lambda: now)
