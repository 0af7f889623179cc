"""
Ticket number allocation.

Numbers look like TKT-2025-007: the creation year plus a per-year sequence,
zero-padded to three digits. The sequence lives in `ticket_sequences` and is
incremented by an UPDATE inside the caller's transaction. The UPDATE holds
the row's write lock until commit, so two concurrent creations can never
read the same value.
"""
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.models import Ticket, TicketSequence


log = structlog.get_logger(__name__)

TICKET_PREFIX = "TKT"


def format_ticket_no(year: int, seq: int) -> str:
    return f"{TICKET_PREFIX}-{year}-{seq:03d}"


def parse_ticket_seq(ticket_no: Optional[str], year: int) -> Optional[int]:
    prefix = f"{TICKET_PREFIX}-{year}-"
    if not ticket_no or not ticket_no.startswith(prefix):
        return None
    tail = ticket_no[len(prefix):]
    return int(tail) if tail.isdigit() else None


def _highest_existing_seq(db: Session, year: int) -> int:
    rows = db.query(Ticket.ticket_no).filter(Ticket.ticket_no.like(f"{TICKET_PREFIX}-{year}-%")).all()
    seqs = [parse_ticket_seq(r[0], year) for r in rows]
    return max([s for s in seqs if s is not None], default=0)


def _increment(db: Session, year: int) -> Optional[int]:
    updated = (
        db.query(TicketSequence)
        .filter(TicketSequence.year == year)
        .update({TicketSequence.last_value: TicketSequence.last_value + 1}, synchronize_session=False)
    )
    if not updated:
        return None
    return db.query(TicketSequence.last_value).filter(TicketSequence.year == year).scalar()


def _seed_sequence(db: Session, year: int) -> None:
    # First ticket of the year: start from whatever numbers already exist
    start = _highest_existing_seq(db, year)
    try:
        with db.begin_nested():
            db.add(TicketSequence(year=year, last_value=start))
    except IntegrityError:
        # Another transaction created the row first
        log.info("ticket_sequence_seed_race", year=year)


def allocate_ticket_no(db: Session, year: int) -> str:
    """Reserve the next ticket number for `year`. Does not commit."""
    value = _increment(db, year)
    if value is None:
        _seed_sequence(db, year)
        value = _increment(db, year)
        if value is None:
            raise RuntimeError(f"ticket sequence for {year} could not be created")
    return format_ticket_no(year, value)
