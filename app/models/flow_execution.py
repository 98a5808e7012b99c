from sqlalchemy import Column, Integer, String, JSON, ForeignKey, DateTime
from datetime import datetime
from app.db.base import Base


class FlowExecution(Base):
    __tablename__ = "flow_executions"

    id = Column(Integer, primary_key=True, index=True)
    flow_id = Column(Integer, ForeignKey("flows.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("instagram_accounts.id", ondelete="CASCADE"), nullable=False)
    trigger_type = Column(String, nullable=False)
    trigger_data = Column(JSON, nullable=False)
    status = Column(String, nullable=False, default="running")  # running, success, failed
    execution_path = Column(JSON, nullable=True)
    node_results = Column(JSON, nullable=True)
    error_message = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
