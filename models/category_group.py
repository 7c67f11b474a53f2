from sqlalchemy import Column, String, ForeignKey
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class CategoryGroup(BaseModel, Base):
    __tablename__ = "category_groups"

    budget_id = Column(String(36), ForeignKey("budgets.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)

    categories = relationship(
        "Category",
        back_populates="category_group",
        passive_deletes=True,
        order_by="Category.name",
    )
