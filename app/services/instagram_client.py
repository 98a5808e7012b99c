"""
Async Instagram Graph API client used as the flow engine's action provider.

Uses the Instagram-native Graph API (graph.instagram.com) with the account's
Instagram Business access token sent as a Bearer header.
"""
import logging
from typing import Any, Dict, List

import httpx

from app.core.config import (
    HTTP_TIMEOUT_SECONDS,
    INSTAGRAM_GRAPH_API_BASE,
    INSTAGRAM_GRAPH_API_VERSION,
    MAX_TEMPLATE_BUTTONS,
)

logger = logging.getLogger(__name__)

# Instagram private reply / DM text limit (conservative to avoid Meta "unknown error")
PRIVATE_REPLY_MESSAGE_MAX_LENGTH = 500
TEMPLATE_TITLE_MAX_LENGTH = 80
BUTTON_TITLE_MAX_LENGTH = 20


class InstagramAPIError(Exception):
    """A Graph API call returned a non-2xx response or could not be sent."""

    def __init__(self, message: str, status_code: int | None = None, detail: Any = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


def _error_text(response: httpx.Response) -> str:
    # Graph API errors look like {"error": {"message": "...", "code": 100, ...}}
    try:
        body = response.json()
    except ValueError:
        return response.text or str(response.status_code)
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("message") or response.text
    return response.text or str(response.status_code)


def build_template_buttons(buttons: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Convert flow button config into Graph API template buttons.

    Buttons: [{"type": "web_url", "title": "Shop", "url": "https://..."},
              {"type": "postback", "title": "More info", "payload": "MORE_INFO"}]
    Invalid entries are dropped, titles truncated to 20 chars, at most 3 kept.
    """
    template_buttons = []
    for button in buttons or []:
        if not isinstance(button, dict) or not button.get("title"):
            continue
        button_type = button.get("type") or ("web_url" if button.get("url") else "postback")
        title = str(button["title"])[:BUTTON_TITLE_MAX_LENGTH]
        if button_type == "web_url" and button.get("url"):
            template_buttons.append({"type": "web_url", "url": str(button["url"]), "title": title})
        elif button_type == "postback" and button.get("payload"):
            template_buttons.append({"type": "postback", "payload": str(button["payload"]), "title": title})
    return template_buttons[:MAX_TEMPLATE_BUTTONS]


class InstagramClient:
    def __init__(self, access_token: str, transport: httpx.AsyncBaseTransport | None = None):
        self.access_token = access_token
        self.base_url = f"{INSTAGRAM_GRAPH_API_BASE}/{INSTAGRAM_GRAPH_API_VERSION}"
        self._transport = transport

    async def _request(self, method: str, path: str, action: str, json: Dict[str, Any] | None = None) -> Dict[str, Any]:
        url = f"{self.base_url}/{path}"
        headers = {"Authorization": f"Bearer {self.access_token}"}
        logger.info("📤 [Graph API] %s %s (%s)", method, url, action)

        try:
            async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS, transport=self._transport) as client:
                response = await client.request(method, url, json=json, headers=headers)
        except httpx.RequestError as e:
            logger.error("❌ [Graph API] %s request error: %s", action, e)
            raise InstagramAPIError(f"Failed to {action}: {e}") from e

        if response.status_code >= 400:
            error_detail = _error_text(response)
            logger.error("❌ [Graph API] Failed to %s: %s", action, response.text)
            raise InstagramAPIError(
                f"Failed to {action}: {error_detail}",
                status_code=response.status_code,
                detail=response.text,
            )

        try:
            result = response.json()
        except ValueError:
            result = {"success": True}
        logger.info("✅ [Graph API] %s succeeded: %s", action, result)
        return result

    async def reply_to_comment(self, comment_id: str, message: str) -> Dict[str, Any]:
        """Public reply under a comment on the account's own post/reel."""
        return await self._request("POST", f"{comment_id}/replies", "reply to comment", json={"message": message})

    async def delete_comment(self, comment_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", comment_id, "delete comment")

    async def hide_comment(self, comment_id: str) -> Dict[str, Any]:
        return await self._request("POST", comment_id, "hide comment", json={"hide": True})

    async def like_comment(self, comment_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"{comment_id}/likes", "like comment", json={})

    async def send_direct_message(self, recipient_id: str, message: str) -> Dict[str, Any]:
        """
        Send a text DM. The recipient must have messaged the account within the
        last 24 hours (standard messaging window).
        """
        payload = {
            "recipient": {"id": recipient_id},
            "message": {"text": message},
        }
        return await self._request("POST", "me/messages", "send DM", json=payload)

    async def send_private_reply(self, comment_id: str, message: str) -> Dict[str, Any]:
        """
        Send a private DM in reply to a comment. Not limited by the 24-hour window;
        the recipient is addressed by comment_id instead of user id.
        """
        text = (message or "").strip()
        if len(text) > PRIVATE_REPLY_MESSAGE_MAX_LENGTH:
            text = text[:PRIVATE_REPLY_MESSAGE_MAX_LENGTH - 3] + "..."
            logger.warning("⚠️ [PRIVATE REPLY] Message truncated to %s chars", PRIVATE_REPLY_MESSAGE_MAX_LENGTH)
        payload = {
            "recipient": {"comment_id": comment_id},
            "message": {"text": text or " "},
        }
        return await self._request("POST", "me/messages", "send private reply", json=payload)

    async def send_button_template(
        self,
        recipient_id: str,
        title: str,
        subtitle: str | None = None,
        buttons: List[Dict[str, Any]] | None = None
    ) -> Dict[str, Any]:
        """Send a generic template DM with up to 3 web_url/postback buttons."""
        template_buttons = build_template_buttons(buttons or [])
        if not template_buttons:
            # Nothing clickable survived validation; a plain DM carries the same text
            return await self.send_direct_message(recipient_id, title)

        element = {
            "title": (title or " ")[:TEMPLATE_TITLE_MAX_LENGTH],
            "subtitle": (subtitle or "")[:TEMPLATE_TITLE_MAX_LENGTH],
            "buttons": template_buttons,
        }
        payload = {
            "recipient": {"id": recipient_id},
            "message": {
                "attachment": {
                    "type": "template",
                    "payload": {
                        "template_type": "generic",
                        "elements": [element],
                    },
                }
            },
        }
        return await self._request("POST", "me/messages", "send button template", json=payload)
