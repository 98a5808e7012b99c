"""
Synchronous Graph API helpers for account setup and diagnostics.
Flow actions go through the async client in app/services/instagram_client.py.
"""
import logging
import requests

from app.core.config import HTTP_TIMEOUT_SECONDS, INSTAGRAM_GRAPH_API_BASE, INSTAGRAM_GRAPH_API_VERSION

logger = logging.getLogger(__name__)

# Fields flows depend on: DMs (messages) and comment/mention/story events
REQUIRED_WEBHOOK_FIELDS = ["messages", "comments", "mentions", "story_insights"]


def get_webhook_status(instagram_user_id: str, access_token: str) -> dict:
    """
    Check which webhook fields the app is subscribed to for an Instagram account.

    Args:
        instagram_user_id: The Instagram Business Account ID
        access_token: The account's Instagram access token

    Returns:
        dict: {"instagram_user_id", "subscribed_fields", "missing_fields", "is_subscribed"}

    Raises:
        Exception: If the API request fails
    """
    url = f"{INSTAGRAM_GRAPH_API_BASE}/{INSTAGRAM_GRAPH_API_VERSION}/{instagram_user_id}/subscribed_apps"
    headers = {"Authorization": f"Bearer {access_token}"}

    logger.info("🔍 Checking webhook subscriptions for %s", instagram_user_id)
    response = requests.get(url, headers=headers, timeout=HTTP_TIMEOUT_SECONDS)

    if response.status_code != 200:
        error_detail = response.text
        logger.error("❌ Failed to fetch webhook subscriptions: %s", error_detail)
        raise Exception(f"Failed to fetch webhook subscriptions: {error_detail}")

    apps = response.json().get("data") or []
    subscribed_fields = []
    for app in apps:
        for field in app.get("subscribed_fields") or []:
            if field not in subscribed_fields:
                subscribed_fields.append(field)

    missing_fields = [field for field in REQUIRED_WEBHOOK_FIELDS if field not in subscribed_fields]
    return {
        "instagram_user_id": instagram_user_id,
        "subscribed_fields": subscribed_fields,
        "missing_fields": missing_fields,
        "is_subscribed": bool(apps) and not missing_fields,
    }
