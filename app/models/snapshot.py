"""
TrackerSnapshot — one JSON document per owner holding the whole tracker
aggregate (habits, tracking fields, day records, events, templates).

payload: the camelCase JSON shape produced by TrackerData.to_json_dict().
last_modified: epoch millis copied from the payload; sync compares it
(last write wins).
"""
from datetime import datetime
from sqlalchemy import BigInteger, Integer, String, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class TrackerSnapshot(Base):
    __tablename__ = "tracker_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    owner: Mapped[str] = mapped_column(String(128), nullable=False, unique=True, index=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    last_modified: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
