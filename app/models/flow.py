from sqlalchemy import Column, Integer, String, JSON, Boolean, ForeignKey, DateTime
from datetime import datetime
from app.db.base import Base


class Flow(Base):
    __tablename__ = "flows"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("instagram_accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    is_active = Column(Boolean, default=False, nullable=False)
    nodes = Column(JSON, nullable=False, default=list)
    edges = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def get_trigger_types(self) -> list:
        """Trigger types declared by this flow's trigger node(s)."""
        return [
            (node.get("data") or {}).get("triggerType")
            for node in (self.nodes or [])
            if node.get("type") == "trigger"
        ]
