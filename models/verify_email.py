from datetime import timedelta

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from models.base_model import BaseModel, Base

# Verification links stay valid for 15 minutes
EMAIL_VERIFICATION_EXPIRATION = timedelta(minutes=15)


class VerifyEmail(BaseModel, Base):
    __tablename__ = "verify_emails"

    username = Column(String(64), ForeignKey("users.username"), nullable=False, index=True)
    email = Column(String(255), nullable=False)
    code = Column(String(32), nullable=False)
    used = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
