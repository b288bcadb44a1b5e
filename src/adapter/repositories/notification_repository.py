"""SQLAlchemy Notification Repository Implementation"""

from datetime import date, datetime, time, timedelta
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.notification_repository import NotificationRepository
from src.domain.notification import Notification, NotificationType


class SqlAlchemyNotificationRepository(NotificationRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, notification: Notification) -> Notification:
        self.session.add(notification)
        await self.session.flush()
        await self.session.refresh(notification)
        return notification

    async def exists_for_day(
        self,
        user_id: str,
        notification_type: NotificationType,
        cycle_id: str,
        day: date,
    ) -> bool:
        day_start = datetime.combine(day, time.min)
        day_end = day_start + timedelta(days=1)
        statement = select(Notification.id).where(
            Notification.user_id == user_id,
            Notification.type == notification_type,
            Notification.cycle_id == cycle_id,
            Notification.created_at >= day_start,
            Notification.created_at < day_end,
        )
        result = await self.session.execute(statement.limit(1))
        return result.first() is not None
