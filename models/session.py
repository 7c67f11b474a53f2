"""
Session model: one row per successful login, keyed by the refresh token's jti.
Fields:
- id (String(36)) - equals the jti embedded in refresh_token
- username - FK to users.username
- refresh_token, user_agent, client_ip
- is_blocked (bool) - the only field updated after creation
- expires_at - expiry of the refresh token
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text
from models.base_model import BaseModel, Base


class Session(BaseModel, Base):
    __tablename__ = "sessions"

    username = Column(String(64), ForeignKey("users.username"), nullable=False, index=True)
    refresh_token = Column(Text, nullable=False)
    user_agent = Column(String(255), nullable=False, default="")
    client_ip = Column(String(64), nullable=False, default="")
    is_blocked = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<Session id={self.id} username={self.username}>"
