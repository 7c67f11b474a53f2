from sqlalchemy import Column, String, ForeignKey

from models.base_model import BaseModel, Base


class Payee(BaseModel, Base):
    __tablename__ = "payees"

    budget_id = Column(String(36), ForeignKey("budgets.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
