from typing import Optional

from pydantic import field_validator

from dormpay.schemas.base import CamelModel, coerce_str


class ReceiptCreate(CamelModel):
    payment_id: str
    receipt_no: str
    copy_type: str


class Receipt(CamelModel):
    id: str
    payment_id: Optional[str] = None
    receipt_no: Optional[str] = None
    copy_type: Optional[str] = None

    @field_validator("id", "payment_id", mode="before")
    @classmethod
    def _stringify(cls, v):
        return coerce_str(v)
