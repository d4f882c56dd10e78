from typing import Optional
from fastapi import Header, status
from src.adapter.database import create_database_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from libs.result import Error
from src.adapter.services.notification_service import create_notification_service
from src.adapter.services.payment_gateway import HttpPaymentGateway
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.error import ClientError
from src.app.services.notification_service import NotificationService
from src.app.services.payment_gateway import PaymentGateway

engine = create_database_engine(ApplicationConfig.DB_URI)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


async def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Owner identity from the X-User-Id header set by the auth gateway"""
    if not x_user_id or not x_user_id.strip():
        raise ClientError(
            Error(code="UNAUTHORIZED", message="Missing X-User-Id header"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return x_user_id.strip()


def get_notification_service() -> NotificationService:
    return create_notification_service(
        ApplicationConfig.NOTIFICATION_WEBHOOK_URL,
        timeout=ApplicationConfig.NOTIFICATION_TIMEOUT_SECONDS,
    )


def get_payment_gateway() -> Optional[PaymentGateway]:
    """Gateway client, or None when no secret key is configured"""
    if not ApplicationConfig.GATEWAY_SECRET_KEY:
        return None
    return HttpPaymentGateway(
        api_url=ApplicationConfig.GATEWAY_API_URL,
        secret_key=ApplicationConfig.GATEWAY_SECRET_KEY,
        publishable_key=ApplicationConfig.GATEWAY_PUBLISHABLE_KEY,
        timeout=ApplicationConfig.GATEWAY_TIMEOUT_SECONDS,
    )


def get_webhook_secret() -> str:
    return ApplicationConfig.GATEWAY_WEBHOOK_SECRET or ""
