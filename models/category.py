from sqlalchemy import Column, String, ForeignKey
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class Category(BaseModel, Base):
    __tablename__ = "categories"

    category_group_id = Column(String(36), ForeignKey("category_groups.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)

    category_group = relationship("CategoryGroup", back_populates="categories")
