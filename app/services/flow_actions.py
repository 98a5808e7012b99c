"""
Action dispatch for flow action nodes.

Each action type maps to an async handler in ACTION_HANDLERS. Handlers read
the (already substituted) node config and the run variables, call the action
provider, and return the output recorded in the node result. Missing inputs
raise ActionConfigError; provider and HTTP errors propagate unchanged.
"""
import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict

from app.services.flow_errors import ActionConfigError
from app.services.flow_variables import substitute_variables

logger = logging.getLogger(__name__)

# Config keys that support {variable} substitution
SUBSTITUTED_CONFIG_KEYS = ("message", "url")

# Actions that end the walk once they have run
TERMINAL_ACTIONS = {"stop_flow"}


@dataclass
class ActionContext:
    variables: Dict[str, Any]
    trigger_data: Dict[str, Any]
    provider: Any
    http_client: Any = None
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)


ActionHandler = Callable[[Dict[str, Any], ActionContext], Awaitable[Dict[str, Any]]]
ACTION_HANDLERS: Dict[str, ActionHandler] = {}


def register_action(action_type: str):
    """Register an async handler for an action type."""
    def decorator(func: ActionHandler) -> ActionHandler:
        ACTION_HANDLERS[action_type] = func
        return func
    return decorator


def prepare_config(action_config: Dict[str, Any], variables: Dict[str, Any]) -> Dict[str, Any]:
    """Copy the node config with {variable} tokens resolved in message/url."""
    config = dict(action_config or {})
    for key in SUBSTITUTED_CONFIG_KEYS:
        if config.get(key):
            config[key] = substitute_variables(config[key], variables)
    return config


async def execute_action(action_type: str, action_config: Dict[str, Any], context: ActionContext) -> Dict[str, Any]:
    handler = ACTION_HANDLERS.get(action_type)
    if handler is None:
        raise ActionConfigError(action_type, f"Unknown action type: {action_type}")

    config = prepare_config(action_config, context.variables)
    logger.info("⚡ [FlowEngine] Executing action %s with config %s", action_type, config)
    return await handler(config, context)


def _require_comment_id(context: ActionContext, action_type: str) -> str:
    comment_id = context.variables.get("comment_id")
    if not comment_id:
        raise ActionConfigError.missing("comment_id", action_type)
    return comment_id


@register_action("reply_comment")
async def reply_comment(config: Dict[str, Any], context: ActionContext) -> Dict[str, Any]:
    comment_id = _require_comment_id(context, "reply_comment")
    message = config.get("message")
    if not message:
        raise ActionConfigError.missing("message", "reply_comment")

    result = await context.provider.reply_to_comment(comment_id, message)
    return {"action": "reply_comment", "comment_id": comment_id, "message": message, "result": result}


@register_action("send_dm")
async def send_dm(config: Dict[str, Any], context: ActionContext) -> Dict[str, Any]:
    message = config.get("message")
    if not message:
        raise ActionConfigError.missing("message", "send_dm")

    # A comment-triggered run answers through a private reply, even when a
    # sender_id was also extracted from the payload
    comment_id = context.variables.get("comment_id")
    if comment_id:
        result = await context.provider.send_private_reply(comment_id, message)
        return {
            "action": "send_dm",
            "method": "private_reply",
            "comment_id": comment_id,
            "message": message,
            "result": result,
        }

    recipient_id = context.variables.get("sender_id")
    if not recipient_id:
        raise ActionConfigError(
            "send_dm",
            "Missing comment_id or sender_id for send_dm action",
        )

    buttons = config.get("buttons")
    if buttons:
        result = await context.provider.send_button_template(
            recipient_id,
            message,
            config.get("subtitle"),
            buttons,
        )
    else:
        result = await context.provider.send_direct_message(recipient_id, message)

    output = {
        "action": "send_dm",
        "method": "direct_message",
        "recipient_id": recipient_id,
        "message": message,
        "result": result,
    }
    if buttons:
        output["buttons"] = buttons
    return output


async def _comment_action(action_type: str, provider_call, context: ActionContext) -> Dict[str, Any]:
    comment_id = _require_comment_id(context, action_type)
    result = await provider_call(comment_id)
    return {"action": action_type, "comment_id": comment_id, "result": result}


@register_action("delete_comment")
async def delete_comment(config: Dict[str, Any], context: ActionContext) -> Dict[str, Any]:
    return await _comment_action("delete_comment", context.provider.delete_comment, context)


@register_action("hide_comment")
async def hide_comment(config: Dict[str, Any], context: ActionContext) -> Dict[str, Any]:
    return await _comment_action("hide_comment", context.provider.hide_comment, context)


@register_action("like_comment")
async def like_comment(config: Dict[str, Any], context: ActionContext) -> Dict[str, Any]:
    return await _comment_action("like_comment", context.provider.like_comment, context)


@register_action("send_link")
async def send_link(config: Dict[str, Any], context: ActionContext) -> Dict[str, Any]:
    sender_id = context.variables.get("sender_id")
    if not sender_id:
        raise ActionConfigError.missing("sender_id", "send_link")
    url = config.get("url")
    if not url:
        raise ActionConfigError.missing("url", "send_link")

    result = await context.provider.send_direct_message(sender_id, url)
    return {"action": "send_link", "sender_id": sender_id, "url": url, "result": result}


@register_action("api_call")
async def api_call(config: Dict[str, Any], context: ActionContext) -> Dict[str, Any]:
    endpoint = config.get("endpoint")
    if not endpoint:
        raise ActionConfigError.missing("endpoint", "api_call")
    if context.http_client is None:
        raise ActionConfigError("api_call", "No HTTP client configured for api_call action")

    method = str(config.get("method") or "POST").upper()
    result = await context.http_client.request(method, endpoint, json=context.trigger_data)
    return {"action": "api_call", "endpoint": endpoint, "method": method, "result": result}


@register_action("delay")
async def delay(config: Dict[str, Any], context: ActionContext) -> Dict[str, Any]:
    raw_seconds = config.get("seconds")
    if raw_seconds is None or raw_seconds == "":
        raise ActionConfigError.missing("seconds", "delay")
    try:
        seconds = float(raw_seconds)
    except (TypeError, ValueError):
        raise ActionConfigError("delay", f"Invalid seconds for delay action: {raw_seconds!r}")
    if not math.isfinite(seconds) or seconds < 0:
        raise ActionConfigError("delay", f"Invalid seconds for delay action: {raw_seconds!r}")
    if seconds.is_integer():
        seconds = int(seconds)

    logger.info("⏳ [FlowEngine] Delaying %s second(s)", seconds)
    await context.sleep(seconds)
    return {"action": "delay", "seconds": seconds}


@register_action("set_variable")
async def set_variable(config: Dict[str, Any], context: ActionContext) -> Dict[str, Any]:
    name = config.get("name") or config.get("variable")
    if not name:
        raise ActionConfigError.missing("name", "set_variable")

    value = substitute_variables(config.get("value", ""), context.variables)
    context.variables[name] = value
    return {"action": "set_variable", "name": name, "value": value}


@register_action("stop_flow")
async def stop_flow(config: Dict[str, Any], context: ActionContext) -> Dict[str, Any]:
    output = {"action": "stop_flow"}
    if config.get("reason"):
        output["reason"] = config["reason"]
    return output
