"""
Query predicates for the ticket and report list endpoints.

Each builder takes the raw optional filter values and returns a single
SQLAlchemy boolean clause with every supplied constraint AND-ed together,
or None when nothing was supplied (meaning: no WHERE clause at all).
"""
from datetime import date
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

from ..models.models import Report, Ticket


LIKE_ESCAPE = "\\"


class FilterError(ValueError):
    """Raised when a filter value is present but cannot be used (e.g. a malformed date)."""


def _clean(value: Optional[str]) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def contains_pattern(term: str) -> str:
    """LIKE pattern matching `term` literally anywhere in the column."""
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def parse_date_bound(value: Optional[str], name: str) -> Optional[date]:
    value = _clean(value)
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise FilterError(f"{name} must be an ISO date (YYYY-MM-DD)")


def _combine(conditions: List[ColumnElement]) -> Optional[ColumnElement]:
    if not conditions:
        return None
    if len(conditions) == 1:
        return conditions[0]
    return and_(*conditions)


def ticket_predicate(
    search: Optional[str] = None,
    status: Optional[str] = None,
    project_type: Optional[str] = None,
) -> Optional[ColumnElement]:
    conditions: List[ColumnElement] = []
    search = _clean(search)
    if search:
        like = contains_pattern(search)
        conditions.append(
            or_(
                Ticket.ticket_no.ilike(like, escape=LIKE_ESCAPE),
                Ticket.site_name.ilike(like, escape=LIKE_ESCAPE),
                Ticket.contact_person.ilike(like, escape=LIKE_ESCAPE),
            )
        )
    status = _clean(status)
    if status:
        conditions.append(Ticket.ticket_status == status)
    project_type = _clean(project_type)
    if project_type:
        conditions.append(Ticket.project_type == project_type)
    return _combine(conditions)


def report_predicate(
    search: Optional[str] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
) -> Optional[ColumnElement]:
    conditions: List[ColumnElement] = []
    search = _clean(search)
    if search:
        conditions.append(Report.name.ilike(contains_pattern(search), escape=LIKE_ESCAPE))
    lower = parse_date_bound(from_date, "fromDate")
    if lower is not None:
        conditions.append(Report.date >= lower)
    upper = parse_date_bound(to_date, "toDate")
    if upper is not None:
        conditions.append(Report.date <= upper)
    return _combine(conditions)
