from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import select
from typing import Any
import logging

from groupbot.models.schemas import ActorStorageEntry, Base


class StorageError(RuntimeError):
    """Raised when actor storage cannot be read or written."""


class CreateData:
    @staticmethod
    async def create_table(engine: AsyncEngine) -> None:
        """Create table if not exists"""
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except IntegrityError as e:
            logging.warning(f"Table already exists or other integrity error: {e}")


class ReadData:
    @staticmethod
    async def read_actor_value(actor_name: str, key: str, session: AsyncSession) -> Any:
        """Read one stored value of an actor

        Args:
            actor_name (str): Stable name of the actor
            key (str): Storage key inside the actor

        Raises:
            StorageError: The storage could not be read

        Returns:
            Any: The decoded JSON value, None if nothing is stored under the key
        """
        try:
            stmt = select(ActorStorageEntry).where(
                ActorStorageEntry.actor_name == actor_name,
                ActorStorageEntry.key == key,
            )
            result = await session.execute(stmt)
            entry = result.scalars().first()
        except SQLAlchemyError as e:
            logging.error(f"Failed to read actor storage {actor_name}/{key}: {e}")
            raise StorageError(str(e)) from e
        if entry is None:
            return None
        return entry.value


class UpdateData:
    @staticmethod
    async def upsert_actor_value(actor_name: str, key: str, value: Any, session: AsyncSession) -> None:
        """Insert or replace one stored value of an actor and commit

        Args:
            actor_name (str): Stable name of the actor
            key (str): Storage key inside the actor
            value (Any): JSON serializable value

        Raises:
            StorageError: The storage could not be written
        """
        try:
            stmt = select(ActorStorageEntry).where(
                ActorStorageEntry.actor_name == actor_name,
                ActorStorageEntry.key == key,
            )
            result = await session.execute(stmt)
            entry = result.scalars().first()
            if entry is None:
                session.add(ActorStorageEntry(actor_name=actor_name, key=key, value=value))
            else:
                entry.value = value
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logging.error(f"Failed to write actor storage {actor_name}/{key}: {e}")
            raise StorageError(str(e)) from e


class DeleteData:
    @staticmethod
    async def delete_actor_value(actor_name: str, key: str, session: AsyncSession) -> None:
        try:
            stmt = select(ActorStorageEntry).where(
                ActorStorageEntry.actor_name == actor_name,
                ActorStorageEntry.key == key,
            )
            result = await session.execute(stmt)
            entry = result.scalars().first()
            if entry is not None:
                await session.delete(entry)
                await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logging.error(f"Failed to delete actor storage {actor_name}/{key}: {e}")
            raise StorageError(str(e)) from e
