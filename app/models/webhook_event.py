from sqlalchemy import Column, Integer, String, JSON, Boolean, ForeignKey, DateTime
from datetime import datetime
from app.db.base import Base


class WebhookEvent(Base):
    __tablename__ = "webhook_events"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("instagram_accounts.id", ondelete="CASCADE"), nullable=True, index=True)
    event_type = Column(String, nullable=False)  # comment_received, dm_received, ... or unknown
    payload = Column(JSON, nullable=False)
    processed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
