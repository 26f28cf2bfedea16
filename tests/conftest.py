import pytest
from types import SimpleNamespace
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from app.database.database import Base, get_db
from app.database.models.users import Department, User
from app.database.models import request, vehicle_request  # noqa: F401
from tests.factories import ITEM_STEPS, InMemoryWorkflowRepository, add_workflow

TEST_DATABASE_URL = "sqlite://"


@pytest.fixture
def memory_repository():
    return InMemoryWorkflowRepository()


@pytest.fixture
def engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite needs explicit BEGIN for SAVEPOINT to behave
    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def departments(db):
    it = Department(name="Information Technology", description="IT Department")
    hr = Department(name="Human Resources", description="HR Department")
    odhc = Department(name="ODHC", description="Organizational Development and Human Capital")
    db.add_all([it, hr, odhc])
    db.commit()
    return SimpleNamespace(it=it, hr=hr, odhc=odhc)


@pytest.fixture
def users(db, departments):
    def user(username, role, department):
        return User(
            username=username,
            email=f"{username}@example.com",
            first_name=username.capitalize(),
            last_name="Tester",
            role=role,
            department_id=department.id if department else None,
        )

    people = SimpleNamespace(
        admin=user("admin", "super_administrator", departments.it),
        requestor=user("rita", "requestor", departments.hr),
        hr_approver=user("hank", "department_approver", departments.hr),
        it_approver=user("ivan", "department_approver", departments.it),
        odhc_approver=user("olga", "department_approver", departments.odhc),
        it_manager=user("mona", "it_manager", departments.it),
        service_desk=user("sam", "service_desk", departments.it),
    )
    db.add_all(list(vars(people).values()))
    db.commit()
    return people


@pytest.fixture
def item_workflow(db, users):
    return add_workflow(db, "item_request", users.admin, ITEM_STEPS)
