"""
Routes Instagram webhook deliveries to flows.

Meta payload shape:
{
  "object": "instagram",
  "entry": [
    {
      "id": "<instagram business account id>",
      "messaging": [{"sender": {"id": ...}, "message": {"mid": ..., "text": ...}}],
      "changes": [{"field": "comments", "value": {"id": ..., "text": ..., "from": {...}, "media": {...}}}]
    }
  ]
}

Each messaging item / change is flattened into a trigger payload, stored as a
WebhookEvent, and run through every active flow of the account whose trigger
node listens for that event type. Matched flows run concurrently.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, List, Tuple

from sqlalchemy.orm import Session

from app.models.flow import Flow
from app.models.flow_execution import FlowExecution
from app.models.instagram_account import InstagramAccount
from app.models.webhook_event import WebhookEvent
from app.services.flow_engine import FlowEngine

logger = logging.getLogger(__name__)

CHANGE_FIELD_EVENT_TYPES = {
    "comments": "comment_received",
    "messages": "dm_received",
    "mentions": "mention_received",
    "story_insights": "story_reply_received",
    "story_mentions": "story_reply_received",
}


def _is_from_account(value: Dict[str, Any], account: InstagramAccount) -> bool:
    sender = value.get("from") or {}
    return (
        (sender.get("id") is not None and str(sender.get("id")) == str(account.instagram_user_id))
        or (sender.get("username") is not None and sender.get("username") == account.username)
        or bool(sender.get("self_ig_scoped_id"))
    )


def _parse_messaging_event(event: Dict[str, Any]) -> Dict[str, Any] | None:
    message = event.get("message")
    if not isinstance(message, dict):
        # message_edit, message_reactions, postbacks, read receipts
        return None
    if message.get("is_echo"):
        logger.info("🚫 Ignoring bot's own message (echo flag)")
        return None
    return {
        "message_id": message.get("mid"),
        "message_text": message.get("text"),
        "sender_id": (event.get("sender") or {}).get("id"),
        "timestamp": event.get("timestamp"),
    }


def _parse_change(field: str, value: Dict[str, Any]) -> Dict[str, Any]:
    sender = value.get("from") or {}

    if field == "comments":
        return {
            "comment_id": value.get("id"),
            "comment_text": value.get("text"),
            "from_id": sender.get("id"),
            "from_username": sender.get("username"),
            "media_id": (value.get("media") or {}).get("id"),
            "media_type": (value.get("media") or {}).get("media_product_type"),
        }

    if field == "messages":
        # Both value.message and value.messages[] have been seen in the wild
        msg = value.get("message") or (value.get("messages") or [None])[0] or {}
        return {
            "message_id": msg.get("mid") or msg.get("id") or value.get("id"),
            "message_text": msg.get("text") or value.get("text"),
            "sender_id": (msg.get("from") or {}).get("id") or sender.get("id") or (value.get("sender") or {}).get("id"),
            "timestamp": msg.get("created_time") or value.get("created_time") or value.get("timestamp"),
        }

    if field == "mentions":
        return {
            "mention_id": value.get("id"),
            "mention_text": value.get("text"),
            "from_id": sender.get("id"),
            "from_username": sender.get("username"),
            "media_id": (value.get("media") or {}).get("id"),
        }

    # story_insights / story_mentions
    return {
        "reply_id": value.get("id"),
        "reply_text": value.get("text"),
        "from_id": sender.get("id"),
        "from_username": sender.get("username"),
    }


def parse_webhook_entry(entry: Dict[str, Any], account: InstagramAccount) -> List[Tuple[str, Dict[str, Any]]]:
    """
    Flatten one webhook entry into (event_type, trigger_data) pairs.

    Echo messages and comments/mentions/story replies authored by the account
    itself are skipped so flows never answer their own output.
    """
    events = []

    for messaging_event in entry.get("messaging") or []:
        trigger_data = _parse_messaging_event(messaging_event)
        if trigger_data is not None:
            events.append(("dm_received", trigger_data))

    for change in entry.get("changes") or []:
        field = change.get("field")
        value = change.get("value") or {}
        event_type = CHANGE_FIELD_EVENT_TYPES.get(field)

        if event_type is None:
            logger.info("Unknown webhook field: %s", field)
            events.append(("unknown", {"field": field, "value": value}))
            continue

        if field != "messages" and _is_from_account(value, account):
            logger.info("🚫 Skipping %s from the account itself", field)
            continue

        events.append((event_type, _parse_change(field, value)))

    return events


def find_matching_flows(flows: List[Flow], account_id: int, event_type: str) -> List[Flow]:
    """Active flows of the account whose trigger node listens for event_type."""
    return [
        flow for flow in flows
        if flow.is_active
        and flow.account_id == account_id
        and event_type in flow.get_trigger_types()
    ]


async def run_flows(
    db: Session,
    flows: List[Flow],
    account: InstagramAccount,
    event_type: str,
    trigger_data: Dict[str, Any],
    provider,
    http_client=None,
) -> List[FlowExecution]:
    """
    Run each flow against the trigger payload concurrently and record a
    FlowExecution per run. Returns the execution rows in flow order.
    """
    executions = []
    for flow in flows:
        execution = FlowExecution(
            flow_id=flow.id,
            account_id=account.id,
            trigger_type=event_type,
            trigger_data=trigger_data,
            status="running",
            execution_path=[],
        )
        db.add(execution)
        executions.append(execution)
    db.commit()

    engines = [FlowEngine(flow, trigger_data, provider, http_client=http_client) for flow in flows]
    results = await asyncio.gather(*(engine.execute() for engine in engines))

    for flow, execution, result in zip(flows, executions, results):
        execution.status = "success" if result.success else "failed"
        execution.execution_path = result.executionPath
        execution.node_results = [node_result.model_dump() for node_result in result.nodeResults]
        execution.error_message = result.error
        logger.info(
            "Flow execution completed: flow=%s execution=%s status=%s",
            flow.id,
            execution.id,
            execution.status,
        )
    db.commit()
    return executions


async def process_webhook(
    db: Session,
    body: Dict[str, Any],
    provider_factory: Callable[[InstagramAccount], Any],
    http_client=None,
) -> Dict[str, int]:
    """
    Handle a full webhook delivery. provider_factory builds the action provider
    for an account (normally an InstagramClient with the decrypted token).
    """
    stats = {"events": 0, "executions": 0}
    if body.get("object") != "instagram":
        return stats

    for entry in body.get("entry") or []:
        instagram_user_id = str(entry.get("id"))
        account = db.query(InstagramAccount).filter(
            InstagramAccount.instagram_user_id == instagram_user_id
        ).first()

        if not account:
            logger.warning("⚠️ No account found for Instagram user ID: %s", instagram_user_id)
            continue
        if not account.is_active:
            logger.info("Account is inactive: %s", account.username)
            continue

        events = parse_webhook_entry(entry, account)
        if not events:
            continue

        active_flows = db.query(Flow).filter(
            Flow.account_id == account.id,
            Flow.is_active == True
        ).all()
        provider = provider_factory(account)

        for event_type, trigger_data in events:
            webhook_event = WebhookEvent(
                account_id=account.id,
                event_type=event_type,
                payload=trigger_data,
                processed=False,
            )
            db.add(webhook_event)
            db.commit()
            stats["events"] += 1

            matching_flows = find_matching_flows(active_flows, account.id, event_type)
            if not matching_flows:
                logger.info("No active flows for %s on account %s", event_type, account.username)
                continue

            executions = await run_flows(
                db,
                matching_flows,
                account,
                event_type,
                trigger_data,
                provider,
                http_client=http_client,
            )
            stats["executions"] += len(executions)

            if all(execution.status == "success" for execution in executions):
                webhook_event.processed = True
                db.commit()
                logger.info("Webhook event %s marked as processed", webhook_event.id)
            else:
                logger.warning("Webhook event %s left unprocessed due to execution failures", webhook_event.id)

    return stats
