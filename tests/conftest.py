from collections.abc import Callable, Iterator
from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from estatedesk.core.config import settings
from estatedesk.db.session import get_session
from estatedesk.main import app
from estatedesk.models.invoice import Invoice, InvoiceStatus
from estatedesk.models.property import Property, Tenant
from estatedesk.models.user import Role, User
from estatedesk.services import auth as auth_service
from estatedesk.services import invoices as invoice_service

PASSWORD = "Str0ng!Pass"


@pytest.fixture(autouse=True)
def _email_disabled(monkeypatch) -> None:
    monkeypatch.setattr(settings, "EMAIL_PROVIDER", "disabled")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def db(engine) -> Iterator[Session]:
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine) -> Iterator[TestClient]:
    def get_test_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_test_session

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    def _make_user(email: str = "owner@estatedesk.dev", role: Role = Role.TENANT, password: str = PASSWORD) -> User:
        return auth_service.register(db, email=email, full_name="Test User", password=password, role=role)

    return _make_user


@pytest.fixture
def login(client: TestClient) -> Callable[..., dict]:
    def _login(email: str, password: str = PASSWORD) -> dict:
        response = client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()

    return _login


@pytest.fixture
def tenant(db: Session) -> Tenant:
    prop = Property(name="Marina Tower", address="1 Harbour Road")
    db.add(prop)
    db.commit()
    db.refresh(prop)

    tenant = Tenant(property_id=prop.id, full_name="Dana Tenant", email="dana@tenant.dev")
    db.add(tenant)
    db.commit()
    db.refresh(tenant)
    return tenant


@pytest.fixture
def sent_invoice(db: Session, tenant: Tenant) -> Callable[..., Invoice]:
    def _sent_invoice(
        *,
        invoice_date: date,
        due_date: date,
        base_rent: str = "1000.00",
        status: InvoiceStatus = InvoiceStatus.SENT,
    ) -> Invoice:
        invoice = invoice_service.create_invoice(
            db,
            tenant_id=tenant.id,
            property_id=tenant.property_id,
            base_rent=Decimal(base_rent),
            invoice_date=invoice_date,
            due_date=due_date,
        )
        invoice.status = status
        db.add(invoice)
        db.commit()
        db.refresh(invoice)
        return invoice

    return _sent_invoice
