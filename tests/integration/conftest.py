import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from src.depends import get_session
from src.domain import (
    Department,
    PocDepartmentAccess,
    Role,
    User,
    UserRole,
)
from tests.factories import DEPARTMENT_ID


@pytest_asyncio.fixture(scope="function")
async def engine():
    """In-memory SQLite database shared by every connection of one test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    """Create a new database session for each test"""
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def org(db_session):
    """
    One department with a POC, a Finance user, a second Finance user and an
    admin; returns the user IDs by name
    """
    department = Department(id=DEPARTMENT_ID, name="Engineering")
    db_session.add(department)

    users = {
        "poc": User(id="user_poc", email="poc@example.com"),
        "other_poc": User(id="user_other_poc", email="other.poc@example.com"),
        "finance": User(id="user_finance", email="finance@example.com"),
        "finance_2": User(id="user_finance_2", email="finance2@example.com"),
        "admin": User(id="user_admin", email="admin@example.com"),
        "inactive": User(id="user_inactive", email="gone@example.com", is_active=False),
    }
    for user in users.values():
        db_session.add(user)

    db_session.add(UserRole(user_id="user_poc", role=Role.POC))
    db_session.add(UserRole(user_id="user_other_poc", role=Role.POC))
    db_session.add(UserRole(user_id="user_finance", role=Role.FINANCE))
    db_session.add(UserRole(user_id="user_finance_2", role=Role.FINANCE))
    db_session.add(UserRole(user_id="user_admin", role=Role.ADMIN))
    db_session.add(UserRole(user_id="user_inactive", role=Role.FINANCE))

    db_session.add(PocDepartmentAccess(poc_id="user_poc", department_id=DEPARTMENT_ID))

    await db_session.commit()
    return {name: user.id for name, user in users.items()}


@pytest_asyncio.fixture
async def client(db_session):
    """Create test client with database session override"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
