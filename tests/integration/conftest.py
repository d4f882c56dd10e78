import pytest_asyncio
from datetime import datetime, timedelta
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import src.domain  # noqa: F401  registers every table on SQLModel.metadata
from src.adapter.database import create_database_engine
from src.adapter.services.notification_service import LoggingNotificationService
from src.depends import (
    get_notification_service,
    get_payment_gateway,
    get_session,
    get_webhook_secret,
)
from src.domain.account import Account
from src.domain.client import Client

WEBHOOK_SECRET = "whsec_test"
OWNER_ID = "acc_123"


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """File-backed SQLite database, recreated for every test

    Built like the service engine, so writers serialize on BEGIN IMMEDIATE.
    """
    test_db_url = f"sqlite+aiosqlite:///{tmp_path / 'invoices_test.db'}"

    engine = create_database_engine(test_db_url)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def owner(db_session):
    account = Account(id=OWNER_ID, email="owner@studio.test", company_name="Studio Ltd")
    db_session.add(account)
    await db_session.commit()
    return account


@pytest_asyncio.fixture
async def client_record(db_session, owner):
    client = Client(
        user_id=owner.id,
        name="Acme Ltd",
        email="billing@acme.test",
        phone="0712345678",
        currency="KES",
    )
    db_session.add(client)
    await db_session.commit()
    return client


@pytest_asyncio.fixture
def invoice_payload(client_record):
    """Body for a 50,000 + 16% tax invoice due in two weeks"""
    return {
        "client_id": client_record.id,
        "items": [{"description": "Website build", "quantity": "1", "unit_price": "50000.00"}],
        "due_date": (datetime.utcnow() + timedelta(days=14)).isoformat(),
        "tax_rate": "16",
    }


@pytest_asyncio.fixture
async def client(db_session):
    """Create test client with database session override"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    # Override the session dependency to use test session
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_notification_service] = lambda: LoggingNotificationService()
    app.dependency_overrides[get_payment_gateway] = lambda: None
    app.dependency_overrides[get_webhook_secret] = lambda: WEBHOOK_SECRET

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-User-Id": OWNER_ID},
    ) as ac:
        yield ac
