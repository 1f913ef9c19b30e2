from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from dormpay.models.enums import StudentStatus
from dormpay.schemas.base import CamelModel, coerce_str
from dormpay.schemas.payment import Payment


class StudentBase(CamelModel):
    name: str
    department: str
    study_level: str
    birth_place: str
    room_number: str
    floor_number: str

    @field_validator("room_number", "floor_number", mode="before")
    @classmethod
    def _stringify_numbers(cls, v):
        return coerce_str(v)


class StudentCreate(StudentBase):
    pass


class StudentUpdate(StudentBase):
    """The editable fields sent on update."""
    pass


class StudentResponse(StudentBase):
    """A student exactly as the API returns it (no payments)."""
    id: str
    date_added: Optional[str] = None
    deleted_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v):
        return coerce_str(v)


class Student(StudentBase):
    """Full local record: the API student plus its payments."""
    id: str
    date_added: str
    deleted_at: Optional[datetime] = None
    payments: List[Payment] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v):
        return coerce_str(v)

    @property
    def status(self) -> StudentStatus:
        return StudentStatus.DELETED if self.deleted_at is not None else StudentStatus.ACTIVE

    @property
    def is_deleted(self) -> bool:
        return self.status == StudentStatus.DELETED

    def editable_fields(self) -> StudentUpdate:
        return StudentUpdate(
            name=self.name,
            department=self.department,
            study_level=self.study_level,
            birth_place=self.birth_place,
            room_number=self.room_number,
            floor_number=self.floor_number,
        )

    def get_payment(self, payment_id: str) -> Optional[Payment]:
        return next((p for p in self.payments if p.id == payment_id), None)
