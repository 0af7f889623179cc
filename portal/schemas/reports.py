import datetime as dt
from decimal import Decimal
from typing import ClassVar, FrozenSet, Literal, Optional

from pydantic import Field, model_validator

from .base import ApiModel, InputModel


ServiceReport = Literal["Yes", "No", "Partial"]

REPORT_REQUIRED = frozenset({"name", "km_in", "km_out"})


class ReportFields(InputModel):
    name: Optional[str] = Field(default=None, max_length=50)
    date: Optional[dt.date] = None
    km_in: Optional[int] = Field(default=None, ge=0)
    km_out: Optional[int] = Field(default=None, ge=0)
    site1: Optional[str] = Field(default=None, max_length=100)
    service_report1: Optional[ServiceReport] = None
    site2: Optional[str] = Field(default=None, max_length=100)
    service_report2: Optional[ServiceReport] = None
    site3: Optional[str] = Field(default=None, max_length=100)
    site4: Optional[str] = Field(default=None, max_length=100)
    service_report3: Optional[ServiceReport] = None
    transport_mode: Optional[str] = Field(default=None, max_length=100)
    # Taken as sent; km_out - km_in is the client's job
    total_km: Optional[int] = None
    amount: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    paid_on: Optional[dt.date] = None


class ReportCreate(ReportFields):
    name: str = Field(max_length=50)
    km_in: int = Field(ge=0)
    km_out: int = Field(ge=0)


class ReportUpdate(ReportFields):
    non_nullable: ClassVar[FrozenSet[str]] = REPORT_REQUIRED

    @model_validator(mode="after")
    def _check_nulls(self):
        return self.reject_nulls()


class ReportResponse(ApiModel):
    id: int
    name: Optional[str] = None
    date: Optional[dt.date] = None
    km_in: Optional[int] = None
    km_out: Optional[int] = None
    site1: Optional[str] = None
    service_report1: Optional[str] = None
    site2: Optional[str] = None
    service_report2: Optional[str] = None
    site3: Optional[str] = None
    site4: Optional[str] = None
    service_report3: Optional[str] = None
    transport_mode: Optional[str] = None
    total_km: Optional[int] = None
    amount: Optional[Decimal] = None
    paid_on: Optional[dt.date] = None


class ReportStats(ApiModel):
    total: int
    month_km: int
    total_amount: Decimal
