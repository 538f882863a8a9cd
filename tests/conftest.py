import pytest
import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from app.database import Base, enable_sqlite_foreign_keys, get_db
from app.main import app
from app.models.organization import Organization
from app.models.user import User, UserRole
from app.services import auth as auth_service
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)


# pysqlite manages BEGIN itself and breaks SAVEPOINT; hand transaction control to SQLAlchemy
@event.listens_for(engine, "connect")
def _disable_pysqlite_transactions(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "Password123!"


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    # Commits and rollbacks inside the test only touch a savepoint
    session = TestingSessionLocal(bind=connection, join_transaction_mode="create_savepoint")

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def make_org(db_session):
    def _make_org(code="ACME", name="Acme Corp"):
        org = Organization(code=code, name=name)
        db_session.add(org)
        db_session.commit()
        return org
    return _make_org


@pytest.fixture(scope="function")
def org(make_org):
    """Create a default organization for tests."""
    return make_org()


@pytest.fixture(scope="function")
def make_user(db_session):
    def _make_user(email, role=UserRole.EMPLOYEE, organization=None, **fields):
        user = User(
            email=email,
            hashed_password=auth_service.get_password_hash(PASSWORD),
            role=role,
            organization_id=organization.id if organization else None,
            is_active=True,
            name=email.split("@")[0],
            **fields
        )
        db_session.add(user)
        db_session.commit()
        return user
    return _make_user


@pytest.fixture(scope="function")
def admin_user(make_user, org):
    """Create a default organization admin for tests."""
    return make_user("admin@acme.com", role=UserRole.ADMIN, organization=org)


@pytest.fixture(scope="function")
def super_admin(make_user):
    return make_user("root@platform.com", role=UserRole.SUPER_ADMIN)


@pytest.fixture(scope="function")
def employee(make_user, org):
    return make_user("employee@acme.com", role=UserRole.EMPLOYEE, organization=org)


@pytest.fixture(scope="function")
def auth_headers():
    """Helper fixture building bearer headers for a user."""
    def _auth_headers(user):
        token = auth_service.create_access_token(data={
            "sub": user.email,
            "role": user.role.value,
            "org_id": user.organization_id,
        })
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers


@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
