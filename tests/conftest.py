"""Pytest fixtures for testing"""

import pytest
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from loan_tracker.api.main import create_app
from loan_tracker.api.dependencies import get_pin_verifier
from loan_tracker.infrastructure.clients.pin import SecretPinVerifier
from loan_tracker.infrastructure.database.models import Base, LoanInstallment
from loan_tracker.infrastructure.database.session import get_db, get_session_factory


TEST_PIN = "654321"

# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db: Session) -> sessionmaker:
    """Session factory bound to the test database (tables created by `db`)"""
    return TestingSessionLocal


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database and a known PIN"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_pin_verifier] = lambda: SecretPinVerifier(TEST_PIN)
    return TestClient(app)


@pytest.fixture
def authed_client(client: TestClient) -> TestClient:
    """Test client whose session already passed the PIN challenge"""
    response = client.post("/v1/session/pin", json={"pin": TEST_PIN})
    assert response.status_code == 200
    return client


@pytest.fixture
def seed_installments(db: Session) -> Callable[..., List[LoanInstallment]]:
    """Insert installments numbered 1..N (or custom numbers) one month apart"""

    def _seed(count: int = 10, paid_through: int = 0, numbers: List[int] | None = None) -> List[LoanInstallment]:
        first_due = date.today() - timedelta(days=45)
        numbers = numbers or list(range(1, count + 1))
        rows = [
            LoanInstallment(
                installment_number=number,
                due_date=first_due + timedelta(days=30 * (number - 1)),
                paid=number <= paid_through,
                paid_at=datetime.now(timezone.utc) if number <= paid_through else None,
            )
            for number in numbers
        ]
        db.add_all(rows)
        db.commit()
        return sorted(rows, key=lambda row: row.installment_number)

    return _seed
