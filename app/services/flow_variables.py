"""
Variable extraction and substitution for flow runs.

Webhook payloads are flattened upstream (see webhook_router.parse_webhook_entry),
so each event shape is recognized by the keys it carries. A payload may match
more than one shape; later rules overwrite aliases set by earlier ones.
"""
import re
from typing import Dict, Any

_TOKEN_PATTERN = re.compile(r"\{([A-Za-z0-9_]+)\}")

# (variable name, payload key) pairs copied for each event shape
_COMMENT_FIELDS = [
    ("comment_id", "comment_id"),
    ("comment_text", "comment_text"),
    ("message_text", "comment_text"),
    ("username", "from_username"),
    ("user_id", "from_id"),
    ("sender_id", "from_id"),
    ("media_id", "media_id"),
]
_MESSAGE_FIELDS = [
    ("message_id", "message_id"),
    ("message_text", "message_text"),
    ("sender_id", "sender_id"),
    ("user_id", "sender_id"),
    ("username", "sender_username"),
]
_MENTION_FIELDS = [
    ("mention_id", "mention_id"),
    ("mention_text", "mention_text"),
    ("message_text", "mention_text"),
    ("username", "from_username"),
    ("user_id", "from_id"),
    ("media_id", "media_id"),
]
_STORY_REPLY_FIELDS = [
    ("reply_id", "reply_id"),
    ("reply_text", "reply_text"),
    ("message_text", "reply_text"),
    ("username", "from_username"),
    ("user_id", "from_id"),
]

_EVENT_SHAPES = [
    (("comment_id", "comment_text"), _COMMENT_FIELDS),
    (("message_id", "message_text"), _MESSAGE_FIELDS),
    (("mention_id", "mention_text"), _MENTION_FIELDS),
    (("reply_id", "reply_text"), _STORY_REPLY_FIELDS),
]


def extract_variables(trigger_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build the flat variable context for a run from a raw trigger payload.

    Args:
        trigger_data: Flattened webhook payload (comment, DM, mention or story reply)

    Returns:
        dict: variable name -> value. Keys whose source field is absent are not set,
        so an unrecognized payload yields an empty dict.
    """
    variables: Dict[str, Any] = {}
    if not isinstance(trigger_data, dict):
        return variables

    for marker_keys, fields in _EVENT_SHAPES:
        if not any(trigger_data.get(key) for key in marker_keys):
            continue
        for variable_name, payload_key in fields:
            if trigger_data.get(payload_key) is not None:
                variables[variable_name] = trigger_data[payload_key]

    return variables


def substitute_variables(text: str, variables: Dict[str, Any]) -> str:
    """Replace {name} tokens with known variables; unknown tokens stay as written."""
    if not isinstance(text, str):
        return text

    def _replace(match):
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        return match.group(0)

    return _TOKEN_PATTERN.sub(_replace, text)
