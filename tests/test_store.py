from datetime import date
from decimal import Decimal

import pytest

from portal.models.models import Report, Ticket
from portal.services.store import ReportStore, StoreError, TicketStore, UserStore


def _ticket(store, day, **fields):
    base = {
        "date": day,
        "project_type": "Maintenance",
        "site_name": "Site",
        "contact_person": "Contact",
    }
    base.update(fields)
    return store.create(base, today=date(2025, 6, 1))


def test_create_ticket_assigns_number_and_default_status(db_session):
    store = TicketStore(db_session)
    t = _ticket(store, date(2025, 3, 1))
    assert t.id is not None
    assert t.ticket_no == "TKT-2025-001"
    assert t.ticket_status == "Open"


def test_explicit_status_is_kept(db_session):
    t = _ticket(TicketStore(db_session), date(2025, 3, 1), ticket_status="In Progress")
    assert t.ticket_status == "In Progress"


def test_ticket_list_is_newest_first(db_session):
    store = TicketStore(db_session)
    _ticket(store, date(2025, 1, 5), site_name="Old")
    _ticket(store, None, site_name="Undated")
    _ticket(store, date(2025, 4, 9), site_name="New")
    _ticket(store, date(2025, 2, 20), site_name="Mid")
    names = [t.site_name for t in store.list()]
    assert names == ["New", "Mid", "Old", "Undated"]


def test_ticket_search_matches_number_site_or_contact(db_session):
    store = TicketStore(db_session)
    a = _ticket(store, date(2025, 1, 1), site_name="Harbor Plaza", contact_person="Ravi")
    b = _ticket(store, date(2025, 1, 2), site_name="Lake View", contact_person="Priya HARBOR")
    _ticket(store, date(2025, 1, 3), site_name="Hill Top", contact_person="Sunil")

    found = {t.id for t in store.list(search="harbor")}
    assert found == {a.id, b.id}

    by_number = store.list(search=b.ticket_no.lower())
    assert [t.id for t in by_number] == [b.id]


def test_ticket_filters_are_anded(db_session):
    store = TicketStore(db_session)
    match = _ticket(store, date(2025, 1, 1), site_name="Plaza", ticket_status="Closed", project_type="IT Support")
    _ticket(store, date(2025, 1, 2), site_name="Plaza", ticket_status="Open", project_type="IT Support")
    _ticket(store, date(2025, 1, 3), site_name="Plaza", ticket_status="Closed", project_type="Installation")
    _ticket(store, date(2025, 1, 4), site_name="Elsewhere", ticket_status="Closed", project_type="IT Support")

    rows = store.list(search="plaza", status="Closed", project_type="IT Support")
    assert [t.id for t in rows] == [match.id]
    for t in store.list(status="Closed"):
        assert t.ticket_status == "Closed"


def test_search_wildcards_match_literally(db_session):
    store = TicketStore(db_session)
    pct = _ticket(store, date(2025, 1, 1), site_name="100% Cotton Mills")
    _ticket(store, date(2025, 1, 2), site_name="100 Main Street")
    assert [t.id for t in store.list(search="100%")] == [pct.id]


def test_status_filter_is_exact(db_session):
    store = TicketStore(db_session)
    _ticket(store, date(2025, 1, 1), ticket_status="Open")
    assert store.list(status="open") == []


def test_update_changes_only_supplied_fields(db_session):
    store = TicketStore(db_session)
    t = _ticket(store, date(2025, 1, 1), mobile="111")
    updated = store.update(t.id, {"ticket_status": "Completed", "remark_details": None})
    assert updated.ticket_status == "Completed"
    assert updated.mobile == "111"
    assert updated.ticket_no == "TKT-2025-001"


def test_empty_update_leaves_record_unchanged(db_session):
    store = TicketStore(db_session)
    t = _ticket(store, date(2025, 1, 1), issue="Dead UPS")
    before = {c: getattr(t, c) for c in Ticket.__table__.columns.keys()}
    after = store.update(t.id, {})
    assert {c: getattr(after, c) for c in Ticket.__table__.columns.keys()} == before


def test_update_missing_id_returns_none(db_session):
    store = TicketStore(db_session)
    _ticket(store, date(2025, 1, 1))
    assert store.update(9999, {"issue": "x"}) is None
    assert db_session.query(Ticket).filter(Ticket.issue == "x").count() == 0


def test_ticket_number_cannot_be_written(db_session):
    store = TicketStore(db_session)
    t = _ticket(store, date(2025, 1, 1))
    with pytest.raises(ValueError):
        store.update(t.id, {"ticket_no": "TKT-1999-001"})
    with pytest.raises(ValueError):
        store.create({"ticket_no": "TKT-1999-001"})
    assert store.get(t.id).ticket_no == "TKT-2025-001"


def test_delete_twice(db_session):
    store = TicketStore(db_session)
    t = _ticket(store, date(2025, 1, 1))
    assert store.delete(t.id) is True
    assert store.delete(t.id) is False
    assert store.get(t.id) is None
    assert store.delete(424242) is False


def test_report_total_km_is_stored_as_sent(db_session):
    store = ReportStore(db_session)
    r = store.create({"name": "Asha", "km_in": 100, "km_out": 175, "total_km": 0})
    assert store.get(r.id).total_km == 0


def test_report_filters(db_session):
    store = ReportStore(db_session)
    store.create({"name": "Asha", "date": date(2025, 1, 1), "amount": Decimal("10.50")})
    jan = store.create({"name": "Asha K", "date": date(2025, 1, 31)})
    feb = store.create({"name": "asha", "date": date(2025, 2, 1)})
    store.create({"name": "Vikram", "date": date(2025, 1, 15)})

    in_range = store.list(search="ASHA", from_date="2025-01-31", to_date="2025-02-01")
    assert [r.id for r in in_range] == [feb.id, jan.id]

    open_ended = store.list(from_date="2025-01-15")
    assert all(r.date >= date(2025, 1, 15) for r in open_ended)
    assert len(open_ended) == 3

    upto = store.list(to_date="2025-01-01")
    assert [r.name for r in upto] == ["Asha"]


def test_persistence_failures_become_store_errors(engine, db_session):
    Report.__table__.drop(engine)
    store = ReportStore(db_session)
    with pytest.raises(StoreError) as exc:
        store.list()
    assert str(exc.value) == "Failed to retrieve report"
    with pytest.raises(StoreError) as exc:
        store.create({"name": "Asha"})
    assert exc.value.operation == "create"
    assert exc.value.entity == "report"


def test_user_store(db_session):
    users = UserStore(db_session)
    u = users.create_user("ops", "pw")
    assert users.get_user(u.id).user_id == "ops"
    assert users.get_user_by_login("ops").id == u.id
    assert users.get_user_by_login("nobody") is None


def test_ticket_stats_count_each_status(db_session):
    store = TicketStore(db_session)
    assert store.stats() == {
        "total": 0,
        "by_status": {"Open": 0, "In Progress": 0, "Completed": 0, "Closed": 0},
    }
    _ticket(store, date(2025, 1, 1))
    _ticket(store, date(2025, 1, 2))
    _ticket(store, date(2025, 1, 3), ticket_status="In Progress")
    _ticket(store, date(2025, 1, 4), ticket_status="Closed")
    stats = store.stats()
    assert stats["total"] == 4
    assert stats["by_status"] == {"Open": 2, "In Progress": 1, "Completed": 0, "Closed": 1}


def test_report_stats_sum_this_month_and_all_amounts(db_session):
    store = ReportStore(db_session)
    store.create({"name": "Asha", "km_in": 0, "km_out": 40, "total_km": 40, "date": date(2025, 12, 3), "amount": Decimal("100.50")})
    store.create({"name": "Asha", "km_in": 0, "km_out": 60, "total_km": 60, "date": date(2025, 12, 28)})
    # Same month of another year, and an undated report
    store.create({"name": "Ravi", "km_in": 0, "km_out": 99, "total_km": 99, "date": date(2024, 12, 3), "amount": Decimal("20")})
    store.create({"name": "Ravi", "km_in": 0, "km_out": 7, "total_km": 7, "amount": Decimal("9.25")})

    stats = store.stats(today=date(2025, 12, 31))
    assert stats == {"total": 4, "month_km": 100, "total_amount": Decimal("129.75")}
    assert store.stats(today=date(2026, 1, 1))["month_km"] == 0


def test_report_stats_when_empty(db_session):
    assert ReportStore(db_session).stats() == {"total": 0, "month_km": 0, "total_amount": Decimal("0.00")}
