from sqlalchemy import Column, String, Integer, Boolean, Date, ForeignKey, Text
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class Transaction(BaseModel, Base):
    """A money movement on an account. Amounts are integer minor units."""
    __tablename__ = "transactions"

    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    payee_id = Column(String(36), ForeignKey("payees.id"), nullable=False)
    # Removing a category keeps its transactions, uncategorized
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    memo = Column(Text, nullable=True)
    amount = Column(Integer, nullable=False)
    approved = Column(Boolean, nullable=False, default=False)
    cleared = Column(Boolean, nullable=False, default=False)
    reconciled = Column(Boolean, nullable=False, default=False)

    account = relationship("Account")
    payee = relationship("Payee")
    category = relationship("Category")
