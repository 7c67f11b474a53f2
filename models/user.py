from models.base_model import Base, BaseModel, utc_now
from sqlalchemy import Column, String, Boolean, DateTime


class User(BaseModel, Base):
    __tablename__ = "users"
    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    email_verified = Column(Boolean, nullable=False, default=False)
    last_password_change = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")
