from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import Column
from sqlalchemy.types import JSON, DateTime, String
from datetime import datetime


class Base(DeclarativeBase):
    pass


class ActorStorageEntry(Base):
    """One stored value of one named actor."""

    __tablename__ = "actor_storage"
    actor_name = Column(String, primary_key=True)
    key = Column(String, primary_key=True)
    value = Column(JSON)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
