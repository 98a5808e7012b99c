from sqlalchemy import Column, Integer, String, Boolean, DateTime
from datetime import datetime
from app.db.base import Base


class InstagramAccount(Base):
    __tablename__ = "instagram_accounts"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, nullable=False)
    instagram_user_id = Column(String, nullable=False, unique=True, index=True)  # Instagram Business Account ID (entry.id in webhooks)
    encrypted_access_token = Column(String, nullable=False)  # Fernet, keyed by ENCRYPTION_KEY
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
