import datetime as dt
from decimal import Decimal
from typing import ClassVar, Dict, FrozenSet, Literal, Optional

from pydantic import Field, model_validator

from .base import ApiModel, InputModel


TicketStatus = Literal["Open", "In Progress", "Completed", "Closed"]
PaidStatus = Literal["Paid", "Unpaid", "Partial"]

TICKET_REQUIRED = frozenset({
    "date",
    "project_type",
    "received_by",
    "site_name",
    "contact_person",
    "mobile",
    "address",
    "issue",
})


class TicketFields(InputModel):
    date: Optional[dt.date] = None
    project_type: Optional[str] = Field(default=None, max_length=100)
    received_by: Optional[str] = Field(default=None, max_length=100)
    site_name: Optional[str] = Field(default=None, max_length=150)
    contact_person: Optional[str] = Field(default=None, max_length=100)
    mobile: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = None
    issue: Optional[str] = None
    remark_details: Optional[str] = None

    attended_by: Optional[str] = Field(default=None, max_length=100)
    attended_date: Optional[dt.date] = None
    ticket_status: Optional[TicketStatus] = None
    closing_date: Optional[dt.date] = None

    paid_status: Optional[PaidStatus] = None
    amount_received: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)

    feedback: Optional[str] = None
    feedback_date: Optional[dt.date] = None
    feedback_taken_by: Optional[str] = Field(default=None, max_length=100)
    final_remark: Optional[str] = None


class TicketCreate(TicketFields):
    date: dt.date
    project_type: str = Field(max_length=100)
    received_by: str = Field(max_length=100)
    site_name: str = Field(max_length=150)
    contact_person: str = Field(max_length=100)
    mobile: str = Field(max_length=20)
    address: str
    issue: str


class TicketUpdate(TicketFields):
    """Every field optional. Absent means untouched; null clears the column."""

    non_nullable: ClassVar[FrozenSet[str]] = TICKET_REQUIRED | {"ticket_status"}

    @model_validator(mode="after")
    def _check_nulls(self):
        return self.reject_nulls()


class TicketResponse(ApiModel):
    id: int
    ticket_no: str
    date: Optional[dt.date] = None
    project_type: Optional[str] = None
    received_by: Optional[str] = None
    site_name: Optional[str] = None
    contact_person: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[str] = None
    issue: Optional[str] = None
    remark_details: Optional[str] = None
    attended_by: Optional[str] = None
    attended_date: Optional[dt.date] = None
    ticket_status: Optional[str] = None
    closing_date: Optional[dt.date] = None
    paid_status: Optional[str] = None
    amount_received: Optional[Decimal] = None
    feedback: Optional[str] = None
    feedback_date: Optional[dt.date] = None
    feedback_taken_by: Optional[str] = None
    final_remark: Optional[str] = None


class TicketStats(ApiModel):
    total: int
    by_status: Dict[str, int]
