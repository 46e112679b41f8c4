from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from tinylink.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Link(Base):
    __tablename__ = "links"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(8), unique=True, index=True, nullable=False)
    target_url = Column(String(2048), nullable=False)
    clicks = Column(Integer, nullable=False, default=0)
    # Set together with clicks, so it is null exactly while clicks == 0
    last_clicked = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
