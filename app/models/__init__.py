from app.models.instagram_account import InstagramAccount
from app.models.flow import Flow
from app.models.flow_execution import FlowExecution
from app.models.webhook_event import WebhookEvent

__all__ = [
    "InstagramAccount",
    "Flow",
    "FlowExecution",
    "WebhookEvent"
]
