from typing import Optional

from pydantic import Field, field_validator

from dormpay.schemas.base import CamelModel, coerce_str
from dormpay.utils.numbers import parse_int


class PaymentCreate(CamelModel):
    student_id: str
    amount: float = Field(..., ge=0)
    date: str
    month: str
    year: int
    confirmed: bool = False


class Payment(CamelModel):
    """A payment as held in local state, embedded in its student."""
    id: str
    student_id: Optional[str] = None
    amount: float = Field(0, ge=0)
    date: str
    month: str
    year: int
    confirmed: bool = False

    @field_validator("id", "student_id", "month", mode="before")
    @classmethod
    def _stringify(cls, v):
        return coerce_str(v)

    @property
    def month_number(self) -> Optional[int]:
        return parse_int(self.month)

    def falls_in(self, year: int, month: int) -> bool:
        return self.month_number == month and self.year == year
