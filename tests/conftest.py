import os

# Set testing environment before the application is imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from citas.main import app
from citas.core.database import Base, get_db, redis_client
from citas.core.security import Caller, UserRole, create_access_token
from citas.models.appointment import Appointment, AppointmentStatus
from citas.models.profile import Profile

# Create test database
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

# Identity ids used across the suite
STAFF_ID = 1
CUSTOMER_ID = 2
OTHER_CUSTOMER_ID = 3
ADMIN_ID = 4
OTHER_STAFF_ID = 5

PROFILES = [
    {"id": STAFF_ID, "email": "ana@clinic.test", "full_name": "Ana Staff", "specialty": "Tax", "role": "employee"},
    {"id": CUSTOMER_ID, "email": "carlos@client.test", "full_name": "Carlos Client", "role": "user"},
    {"id": OTHER_CUSTOMER_ID, "email": "diana@client.test", "full_name": "Diana Client", "role": None},
    {"id": ADMIN_ID, "email": "root@clinic.test", "full_name": "Root Admin", "role": "admin"},
    {"id": OTHER_STAFF_ID, "email": "eva@clinic.test", "full_name": "Eva Staff", "specialty": "Legal", "role": "staff"},
]

@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    redis_client.data.clear()
    session = TestingSessionLocal()
    session.add_all([Profile(**profile) for profile in PROFILES])
    session.commit()
    session.close()
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db(test_db):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def client(test_db):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

def auth_headers(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}

def caller(user_id: int, role: UserRole) -> Caller:
    return Caller(id=user_id, role=role)

STAFF = caller(STAFF_ID, UserRole.STAFF)
OTHER_STAFF = caller(OTHER_STAFF_ID, UserRole.STAFF)
CUSTOMER = caller(CUSTOMER_ID, UserRole.CUSTOMER)
OTHER_CUSTOMER = caller(OTHER_CUSTOMER_ID, UserRole.CUSTOMER)
ADMIN = caller(ADMIN_ID, UserRole.ADMIN)

def add_appointment(
    session,
    start: datetime,
    end: datetime,
    status: AppointmentStatus = AppointmentStatus.APPROVED,
    employee_id: int = STAFF_ID,
    customer_id: int = CUSTOMER_ID,
    company: str = "Acme",
) -> Appointment:
    appointment = Appointment(
        customer_id=customer_id,
        employee_id=employee_id,
        company=company,
        consultation_type="advisory",
        start_time=start,
        end_time=end,
        status=status,
    )
    session.add(appointment)
    session.commit()
    session.refresh(appointment)
    return appointment
