"""
OutboxEvent model: a side effect recorded in the same database transaction as
the change that causes it. worker.outbox.OutboxDispatcher hands pending rows to
the task queue after commit and stamps dispatched_at.
"""
from sqlalchemy import Column, String, Integer, DateTime, JSON, func

from models.base_model import BaseModel, Base, utc_now


class OutboxEvent(BaseModel, Base):
    __tablename__ = "outbox_events"

    # Stamped in Python with microseconds; dispatch order follows it
    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False)
    event_type = Column(String(64), nullable=False)
    payload = Column(JSON, nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    dispatched_at = Column(DateTime(timezone=True), nullable=True, index=True)

    def __repr__(self):
        return f"<OutboxEvent {self.event_type} id={self.id}>"
