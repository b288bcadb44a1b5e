from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.repositories.user_repository import SqlAlchemyUserRepository
from src.api.error import ClientError
from src.app.use_cases.payment_cycles.dtos import Actor
from src.libs.result import Error

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_current_actor(
    x_user_id: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
) -> Actor:
    """
    Resolve the calling user from the X-User-Id header

    Authentication happens upstream; this only maps the asserted user ID to
    the roles stored in user_roles.
    """
    if not x_user_id:
        raise ClientError(
            Error(code="AUTHENTICATION_REQUIRED", message="X-User-Id header is required"),
            status_code=401,
        )

    user_repo = SqlAlchemyUserRepository(session)
    user = await user_repo.get_by_id(x_user_id)
    if user is None or not user.is_active:
        raise ClientError(
            Error(
                code="AUTHENTICATION_REQUIRED",
                message="Unknown or inactive user",
                reason=f"User {x_user_id} not found",
            ),
            status_code=401,
        )

    return Actor(user_id=user.id, roles=await user_repo.get_roles(user.id))
