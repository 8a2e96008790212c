"""
Shared fixtures: an in-memory SQLite database swapped in for get_db, plus
small factories for users, companies, jobs, plans and credits.
"""
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.auth_dependency import get_db
from app.core.exceptions import JobBoardError
from app.core.rate_limit import rate_limit_store
from app.core.security import create_access_token, hash_password
from app.db.base import Base
from app.db.init_db import init_db
from app.db.models.company import Company, CompanyMember
from app.db.models.job import Job, STATUS_ACTIVE, TIER_NORMAL
from app.db.models.plan import Plan
from app.db.models.user import User, ROLE_EMPLOYER
from app.db.session import enable_sqlite_foreign_keys
from app.services import ledger_service


TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(test_engine)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

TEST_PASSWORD = "testpass123"
# bcrypt is slow on purpose; hash once for every fixture user
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


def override_get_db():
    """Override get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    init_db(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    rate_limit_store.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(email: str, role: str = ROLE_EMPLOYER) -> User:
        user = User(
            email=email,
            first_name=email.split("@")[0].title(),
            password_hash=TEST_PASSWORD_HASH,
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token = create_access_token({"sub": str(user.id), "role": user.role})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def make_company(db):
    def _make(owner: User, name: str = "Chain Labs", approved: bool = True) -> Company:
        company = Company(name=name, slug=name.lower().replace(" ", "-"), is_approved=approved)
        db.add(company)
        db.flush()
        db.add(CompanyMember(company_id=company.id, user_id=owner.id, is_owner=True))
        db.commit()
        db.refresh(company)
        return company
    return _make


@pytest.fixture
def make_job(db):
    def _make(company: Company, status: str = STATUS_ACTIVE, tier: str = TIER_NORMAL, **fields) -> Job:
        values = {
            "title": "Smart Contract Engineer",
            "description": "Build and audit EVM contracts.",
            "visibility_days": 30,
        }
        values.update(fields)
        if status == STATUS_ACTIVE and "published_at" not in values:
            values["published_at"] = datetime.utcnow()
        job = Job(company_id=company.id, status=status, tier=tier, **values)
        db.add(job)
        db.commit()
        db.refresh(job)
        return job
    return _make


@pytest.fixture
def make_plan(db):
    def _make(tier: str = "featured", price: int = 19900, credits: int = 1, name: str = None) -> Plan:
        plan = Plan(
            name=name or f"{tier.title()} Job - 30 Days",
            tier=tier,
            visibility_days=30,
            price=price,
            credits=credits,
            is_active=True,
        )
        db.add(plan)
        db.commit()
        db.refresh(plan)
        return plan
    return _make


@pytest.fixture
def grant_credits(db):
    def _grant(user: User, amount: int, tier: str = "featured"):
        entry = ledger_service.append_entry(
            db, user_id=user.id, amount=amount, tier=tier, reason=ledger_service.REASON_ADMIN_GRANT
        )
        db.commit()
        return entry
    return _grant


@pytest.fixture
def file_sessions(tmp_path):
    """
    Session factory on a file-backed SQLite database, for tests where several
    threads or sessions need their own connections.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    enable_sqlite_foreign_keys(engine)
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def seed_employer_job(file_sessions):
    """An employer, an approved company and one active normal-tier job; returns (user_id, job_id)."""
    session = file_sessions()
    try:
        user = User(email="racer@example.com", first_name="Racer", password_hash=TEST_PASSWORD_HASH, role=ROLE_EMPLOYER)
        company = Company(name="Race Labs", slug="race-labs", is_approved=True)
        session.add_all([user, company])
        session.flush()
        session.add(CompanyMember(company_id=company.id, user_id=user.id, is_owner=True))
        job = Job(
            company_id=company.id,
            status=STATUS_ACTIVE,
            tier=TIER_NORMAL,
            title="MEV Researcher",
            description="Searchers and builders.",
            visibility_days=30,
            published_at=datetime.utcnow(),
        )
        session.add(job)
        session.commit()
        return user.id, job.id
    finally:
        session.close()


@pytest.fixture
def race(file_sessions):
    """
    Run ``worker(session, index)`` in ``count`` threads released together,
    each with its own session. Domain errors are returned, not raised.
    """
    def _race(worker, count: int = 2) -> list:
        barrier = threading.Barrier(count)

        def run(index):
            session = file_sessions()
            try:
                barrier.wait(timeout=10)
                return worker(session, index)
            except JobBoardError as e:
                return e
            finally:
                session.close()

        with ThreadPoolExecutor(max_workers=count) as pool:
            return list(pool.map(run, range(count)))
    return _race
