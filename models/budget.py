from sqlalchemy import Column, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class Budget(BaseModel, Base):
    __tablename__ = "budgets"

    owner_username = Column(String(64), ForeignKey("users.username"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    currency_code = Column(String(3), nullable=False)

    accounts = relationship("Account", back_populates="budget", passive_deletes=True, order_by="Account.name")

    __table_args__ = (
        UniqueConstraint("owner_username", "name", "currency_code", name="uq_budgets_owner_name_currency"),
    )
