import datetime as dt
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Date,
    Integer,
    Numeric,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from ..db import Base


TICKET_STATUSES = ("Open", "In Progress", "Completed", "Closed")
PAID_STATUSES = ("Paid", "Unpaid", "Partial")
SERVICE_REPORT_VALUES = ("Yes", "No", "Partial")


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    # Stored as given; see auth.security.verify_password
    password: Mapped[str] = mapped_column(String(255), nullable=False)


class UserSession(Base):
    __tablename__ = "user_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)  # token jti
    user_pk: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    expires_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class LoginLog(Base):
    __tablename__ = "login_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(100))
    login_time: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    status: Mapped[str] = mapped_column(String(50))  # success|failed


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_no: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    date: Mapped[Optional[dt.date]] = mapped_column(Date, index=True)
    project_type: Mapped[Optional[str]] = mapped_column(String(100), index=True)

    # Intake
    received_by: Mapped[Optional[str]] = mapped_column(String(100))
    site_name: Mapped[Optional[str]] = mapped_column(String(150))
    contact_person: Mapped[Optional[str]] = mapped_column(String(100))
    mobile: Mapped[Optional[str]] = mapped_column(String(20))
    address: Mapped[Optional[str]] = mapped_column(Text)
    issue: Mapped[Optional[str]] = mapped_column(Text)
    remark_details: Mapped[Optional[str]] = mapped_column(Text)

    # Resolution
    attended_by: Mapped[Optional[str]] = mapped_column(String(100))
    attended_date: Mapped[Optional[dt.date]] = mapped_column(Date)
    ticket_status: Mapped[str] = mapped_column(String(50), default="Open", index=True)
    closing_date: Mapped[Optional[dt.date]] = mapped_column(Date)

    # Payment
    paid_status: Mapped[Optional[str]] = mapped_column(String(50))
    amount_received: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))

    # Feedback
    feedback: Mapped[Optional[str]] = mapped_column(Text)
    feedback_date: Mapped[Optional[dt.date]] = mapped_column(Date)
    feedback_taken_by: Mapped[Optional[str]] = mapped_column(String(100))
    final_remark: Mapped[Optional[str]] = mapped_column(Text)


class TicketSequence(Base):
    """Per-year counter backing ticket number assignment."""

    __tablename__ = "ticket_sequences"

    year: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Report(Base):
    __tablename__ = "reports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[Optional[str]] = mapped_column(String(50), index=True)
    date: Mapped[Optional[dt.date]] = mapped_column(Date, index=True)
    km_in: Mapped[Optional[int]] = mapped_column(Integer)
    km_out: Mapped[Optional[int]] = mapped_column(Integer)
    site1: Mapped[Optional[str]] = mapped_column(String(100))
    service_report1: Mapped[Optional[str]] = mapped_column(String(10))
    site2: Mapped[Optional[str]] = mapped_column(String(100))
    service_report2: Mapped[Optional[str]] = mapped_column(String(10))
    site3: Mapped[Optional[str]] = mapped_column(String(100))
    site4: Mapped[Optional[str]] = mapped_column(String(100))
    service_report3: Mapped[Optional[str]] = mapped_column(String(10))
    transport_mode: Mapped[Optional[str]] = mapped_column(String(100))
    # Not derived server-side from km_out - km_in
    total_km: Mapped[Optional[int]] = mapped_column(Integer)
    amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    paid_on: Mapped[Optional[dt.date]] = mapped_column(Date)
