from contextlib import contextmanager
from datetime import date, datetime

from fastapi.testclient import TestClient
from sqlmodel import Session

from estatedesk.models.invoice import InvoiceStatus
from estatedesk.models.user import Role
from estatedesk.scripts import sweep_worker
from estatedesk.services import sweeps
from estatedesk.services.sweeps import SWEEPS, run_all, run_sweep

NOW = datetime(2026, 5, 10, 9, 0, 0)


def _auth(tokens: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {tokens['accessToken']}"}


def test_run_all_on_empty_database(db: Session) -> None:
    results = run_all(db, now=NOW)

    assert [result.name for result in results] == list(SWEEPS)
    assert all(result.ok for result in results)
    assert all(result.affected == 0 for result in results)


def test_failing_sweep_does_not_stop_the_rest(db: Session, sent_invoice, monkeypatch) -> None:
    invoice = sent_invoice(invoice_date=date(2026, 4, 1), due_date=date(2026, 5, 1))

    def broken(session, *, now):
        raise RuntimeError("database went away")

    monkeypatch.setitem(SWEEPS, "pdcs-due", broken)

    results = {result.name: result for result in run_all(db, now=NOW)}

    assert results["pdcs-due"].ok is False
    assert results["pdcs-due"].error == "database went away"
    assert results["invoices-overdue"].ok is True
    assert results["invoices-overdue"].affected == 1
    assert results["invoices-late-fees"].affected == 1
    db.refresh(invoice)
    assert invoice.status == InvoiceStatus.OVERDUE
    assert invoice.late_fee_applied is True


def test_second_run_is_a_no_op(db: Session, sent_invoice) -> None:
    sent_invoice(invoice_date=date(2026, 4, 1), due_date=date(2026, 5, 1))

    first = {result.name: result.affected for result in run_all(db, now=NOW)}
    second = {result.name: result.affected for result in run_all(db, now=NOW)}

    assert first["invoices-overdue"] == 1
    assert set(second.values()) == {0}


def test_worker_runs_selected_sweeps(db: Session, monkeypatch) -> None:
    calls: list[str] = []

    @contextmanager
    def test_scope():
        yield db

    def counting(session, *, now):
        calls.append("pdcs-due")
        return 0

    monkeypatch.setattr(sweep_worker, "session_scope", test_scope)
    monkeypatch.setitem(SWEEPS, "pdcs-due", counting)

    sweep_worker.main(["--once", "--sweep", "pdcs-due"])

    assert calls == ["pdcs-due"]
    assert [result.name for result in sweep_worker.run_once(["pdcs-due"])] == ["pdcs-due"]


def test_run_sweep_reports_affected(db: Session, sent_invoice) -> None:
    sent_invoice(invoice_date=date(2026, 4, 1), due_date=date(2026, 5, 1))

    result = run_sweep(db, "invoices-overdue", now=NOW)

    assert result == sweeps.SweepResult(name="invoices-overdue", ok=True, affected=1)


def test_sweep_route_requires_super_admin(client: TestClient, make_user, login) -> None:
    make_user("admin@estatedesk.dev", role=Role.SUPER_ADMIN)
    make_user("manager@estatedesk.dev", role=Role.PROPERTY_MANAGER)
    admin = login("admin@estatedesk.dev")
    manager = login("manager@estatedesk.dev")

    assert client.post("/sweeps/sessions", headers=_auth(manager)).status_code == 403

    response = client.post("/sweeps/sessions", headers=_auth(admin))
    assert response.status_code == 200
    assert response.json() == {"name": "sessions", "ok": True, "affected": 0, "error": None}

    assert client.post("/sweeps/unknown", headers=_auth(admin)).status_code == 404
