from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base

ACCOUNT_TYPES = ("savings", "checking", "lineofcredit")


class Account(BaseModel, Base):
    __tablename__ = "accounts"

    budget_id = Column(String(36), ForeignKey("budgets.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(32), nullable=False)
    closed = Column(Boolean, nullable=False, default=False)
    note = Column(Text, nullable=True)
    balance = Column(Integer, nullable=False, default=0)
    cleared_balance = Column(Integer, nullable=False, default=0)
    uncleared_balance = Column(Integer, nullable=False, default=0)
    last_reconciled_at = Column(DateTime(timezone=True), nullable=True)

    budget = relationship("Budget", back_populates="accounts")
