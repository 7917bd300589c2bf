"""Pydantic models for customer invoices and bills (account.move)."""

from datetime import date
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, PositiveInt

from hrms_connector.models.common import Adapter, odoo_value, unpack_relational

DEFAULT_FIELDS = [
    "id",
    "name",
    "partner_id",
    "invoice_date",
    "invoice_date_due",
    "amount_total",
    "payment_state",
    "state",
    "move_type",
]

MoveType = Literal[
    "entry", "out_invoice", "out_refund", "in_invoice", "in_refund", "out_receipt", "in_receipt"
]


class Invoice(BaseModel):
    id: int
    name: Optional[str] = None
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    invoice_date: Optional[str] = None
    due_date: Optional[str] = None
    amount_total: Optional[float] = None
    payment_state: Optional[str] = None
    state: Optional[str] = None
    move_type: Optional[str] = None


class InvoiceCreate(BaseModel):
    customer_id: PositiveInt
    name: Optional[str] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    amount_total: Optional[float] = Field(None, ge=0)
    payment_state: Optional[str] = None
    state: Optional[str] = None
    move_type: MoveType = "out_invoice"


class InvoiceUpdate(BaseModel):
    customer_id: Optional[PositiveInt] = None
    name: Optional[str] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    amount_total: Optional[float] = Field(None, ge=0)
    payment_state: Optional[str] = None
    state: Optional[str] = None
    move_type: Optional[MoveType] = None


class InvoiceAdapter(Adapter[Invoice]):
    field_map = {
        "name": "name",
        "customer_id": "partner_id",
        "invoice_date": "invoice_date",
        "due_date": "invoice_date_due",
        "amount_total": "amount_total",
        "payment_state": "payment_state",
        "state": "state",
        "move_type": "move_type",
    }

    def to_dto(self, record: Dict[str, Any]) -> Invoice:
        customer = unpack_relational(record.get("partner_id"))
        return Invoice(
            id=record["id"],
            name=odoo_value(record.get("name")),
            customer_id=customer.id,
            customer_name=customer.name,
            invoice_date=odoo_value(record.get("invoice_date")),
            due_date=odoo_value(record.get("invoice_date_due")),
            amount_total=odoo_value(record.get("amount_total")),
            payment_state=odoo_value(record.get("payment_state")),
            state=odoo_value(record.get("state")),
            move_type=odoo_value(record.get("move_type")),
        )
