"""
Record store for tickets, reports and portal users.

Every persistence failure is rolled back, logged and re-raised as a
StoreError that only names the operation and the entity; callers map it
to a 500 response.
"""
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional, Type

import structlog
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.models import TICKET_STATUSES, Report, Ticket, User
from .filters import report_predicate, ticket_predicate
from .numbering import allocate_ticket_no


log = structlog.get_logger(__name__)

# Attempts at inserting a ticket when its number collides with a concurrent insert
TICKET_NO_ATTEMPTS = 3


class StoreError(Exception):
    def __init__(self, operation: str, entity: str):
        self.operation = operation
        self.entity = entity
        super().__init__(f"Failed to {operation} {entity}")


class RecordStore:
    model: Type[Any]
    entity: str
    # Columns the caller may never write
    readonly_fields = frozenset({"id"})

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, operation: str, error: SQLAlchemyError) -> StoreError:
        self.db.rollback()
        log.error("store_error", operation=operation, entity=self.entity, error=str(error))
        return StoreError(operation, self.entity)

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            raise self._fail(operation, e) from e

    def _writable(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        columns = set(self.model.__table__.columns.keys())
        unknown = [k for k in fields if k not in columns or k in self.readonly_fields]
        if unknown:
            raise ValueError(f"Cannot write {self.entity} fields: {', '.join(sorted(unknown))}")
        return dict(fields)

    def _ordered(self, query):
        return query.order_by(self.model.date.desc().nulls_last(), self.model.id.desc())

    def _list(self, predicate) -> List[Any]:
        with self._guard("retrieve"):
            query = self.db.query(self.model)
            if predicate is not None:
                query = query.filter(predicate)
            return self._ordered(query).all()

    def get(self, record_id: int) -> Optional[Any]:
        with self._guard("retrieve"):
            return self.db.query(self.model).filter(self.model.id == record_id).first()

    def create(self, fields: Dict[str, Any]) -> Any:
        data = self._writable(fields)
        with self._guard("create"):
            row = self.model(**data)
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            return row

    def update(self, record_id: int, changes: Dict[str, Any]) -> Optional[Any]:
        data = self._writable(changes)
        with self._guard("update"):
            row = self.db.query(self.model).filter(self.model.id == record_id).first()
            if row is None:
                return None
            if not data:
                return row
            for key, value in data.items():
                setattr(row, key, value)
            self.db.commit()
            self.db.refresh(row)
            return row

    def delete(self, record_id: int) -> bool:
        with self._guard("delete"):
            row = self.db.query(self.model).filter(self.model.id == record_id).first()
            if row is None:
                return False
            self.db.delete(row)
            self.db.commit()
            return True


class TicketStore(RecordStore):
    model = Ticket
    entity = "ticket"
    readonly_fields = frozenset({"id", "ticket_no"})

    def list(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        project_type: Optional[str] = None,
    ) -> List[Ticket]:
        return self._list(ticket_predicate(search, status, project_type))

    def create(self, fields: Dict[str, Any], today: Optional[date] = None) -> Ticket:
        data = self._writable(fields)
        if not data.get("ticket_status"):
            data["ticket_status"] = "Open"
        year = (today or date.today()).year
        for attempt in range(1, TICKET_NO_ATTEMPTS + 1):
            try:
                ticket_no = allocate_ticket_no(self.db, year)
                row = Ticket(ticket_no=ticket_no, **data)
                self.db.add(row)
                self.db.commit()
                self.db.refresh(row)
                log.info("ticket_created", ticket_id=row.id, ticket_no=ticket_no)
                return row
            except IntegrityError as e:
                # A ticket_no collision is retried; only the last one is an error
                if attempt == TICKET_NO_ATTEMPTS:
                    raise self._fail("create", e) from e
                self.db.rollback()
                log.warning("ticket_no_collision", attempt=attempt, year=year)
            except SQLAlchemyError as e:
                raise self._fail("create", e) from e
        raise StoreError("create", self.entity)

    def stats(self) -> Dict[str, Any]:
        """Ticket counts in total and per status; statuses with no tickets count 0."""
        with self._guard("retrieve"):
            rows = (
                self.db.query(Ticket.ticket_status, func.count(Ticket.id))
                .group_by(Ticket.ticket_status)
                .all()
            )
        by_status = {status: 0 for status in TICKET_STATUSES}
        for status, count in rows:
            if status in by_status:
                by_status[status] = count
        return {"total": sum(count for _, count in rows), "by_status": by_status}


class ReportStore(RecordStore):
    model = Report
    entity = "report"

    def list(
        self,
        search: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
    ) -> List[Report]:
        return self._list(report_predicate(search, from_date, to_date))

    def stats(self, today: Optional[date] = None) -> Dict[str, Any]:
        """Report count, km travelled in the current calendar month and the amount over all reports."""
        today = today or date.today()
        month_start = today.replace(day=1)
        if month_start.month == 12:
            next_month = month_start.replace(year=month_start.year + 1, month=1)
        else:
            next_month = month_start.replace(month=month_start.month + 1)
        with self._guard("retrieve"):
            total, total_amount = self.db.query(func.count(Report.id), func.sum(Report.amount)).one()
            month_km = (
                self.db.query(func.sum(Report.total_km))
                .filter(Report.date >= month_start, Report.date < next_month)
                .scalar()
            )
        return {
            "total": total,
            "month_km": int(month_km or 0),
            "total_amount": Decimal(str(total_amount or 0)).quantize(Decimal("0.01")),
        }


class UserStore(RecordStore):
    model = User
    entity = "user"

    def get_user(self, pk: int) -> Optional[User]:
        return self.get(pk)

    def get_user_by_login(self, user_id: str) -> Optional[User]:
        with self._guard("retrieve"):
            return self.db.query(User).filter(User.user_id == user_id).first()

    def create_user(self, user_id: str, password: str) -> User:
        return self.create({"user_id": user_id, "password": password})
