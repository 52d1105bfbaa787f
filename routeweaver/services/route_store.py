"""Persistence of saved routes."""
import logging
import time
from typing import Callable, List, Optional

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from routeweaver.database import Base

logger = logging.getLogger(__name__)


class SavedRouteRecord(Base):
    __tablename__ = "saved_routes"
    __table_args__ = (UniqueConstraint("user", "route_id", name="uq_saved_routes_user_route_id"),)

    pk = Column(Integer, primary_key=True, autoincrement=True)
    user = Column(String, nullable=False, index=True)
    route_id = Column(Integer, nullable=False)
    route_data = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())


class SavedRouteStore:
    """
    Saved routes keyed by user identity.

    Writes are committed immediately. A duplicate ``(user, route_id)`` makes
    the commit fail with ``IntegrityError``, which is left to the caller.
    """

    def __init__(self, session: AsyncSession, clock: Callable[[], float] = time.time) -> None:
        self.session = session
        self._clock = clock

    async def find_by_user(self, user: str) -> List[SavedRouteRecord]:
        result = await self.session.execute(
            select(SavedRouteRecord)
            .where(SavedRouteRecord.user == user)
            .order_by(SavedRouteRecord.route_id)
        )
        return list(result.scalars().all())

    async def find_by_user_and_id(self, user: str, route_id: int) -> Optional[SavedRouteRecord]:
        result = await self.session.execute(
            select(SavedRouteRecord).where(
                SavedRouteRecord.user == user,
                SavedRouteRecord.route_id == route_id,
            )
        )
        return result.scalar_one_or_none()

    async def next_route_id(self) -> int:
        """
        One past the largest id of any user.

        Falls back to the current Unix time when the scan fails.
        """
        try:
            result = await self.session.execute(select(func.max(SavedRouteRecord.route_id)))
            current = result.scalar()
        except SQLAlchemyError as exc:
            logger.warning(f"Error finding max route id, falling back to timestamp id: {exc}")
            await self.session.rollback()
            return int(self._clock())
        return (current or 0) + 1

    async def insert(self, user: str, route_id: int, route_data: str) -> SavedRouteRecord:
        record = SavedRouteRecord(user=user, route_id=route_id, route_data=route_data)
        self.session.add(record)
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        logger.info(f"Route {route_id} saved for {user}")
        return record

    async def update(self, record: SavedRouteRecord, route_data: str) -> SavedRouteRecord:
        record.route_data = route_data
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        logger.info(f"Route {record.route_id} updated for {record.user}")
        return record
