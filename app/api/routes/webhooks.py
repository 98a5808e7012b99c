"""
Instagram webhook endpoints. Register https://your-backend.com/api/webhooks/instagram
as the callback URL in the Meta app dashboard.
"""
import hashlib
import hmac
import json
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import Response
from sqlalchemy.orm import Session
from app.core import config
from app.db.session import get_db
from app.dependencies.providers import get_provider_factory, get_http_client
from app.services.webhook_router import process_webhook

router = APIRouter()
logger = logging.getLogger(__name__)


def _verify_signature(payload: bytes, signature_header: str | None) -> bool:
    """
    Verify Meta's X-Hub-Signature-256 header ("sha256=<hex digest>"), an
    HMAC-SHA256 of the raw body keyed with the app secret.
    """
    if not config.INSTAGRAM_APP_SECRET or not signature_header:
        return False
    raw = signature_header.strip()
    if raw.startswith("sha256="):
        raw = raw.split("=", 1)[1].strip()

    expected = hmac.new(
        config.INSTAGRAM_APP_SECRET.encode(),
        payload,
        hashlib.sha256
    ).hexdigest()
    return hmac.compare_digest(raw, expected)


@router.get("/instagram")
async def verify_webhook(
    hub_mode: str = Query(None, alias="hub.mode"),
    hub_challenge: str = Query(None, alias="hub.challenge"),
    hub_verify_token: str = Query(None, alias="hub.verify_token")
):
    """
    Meta sends GET with hub.mode=subscribe, hub.challenge and hub.verify_token.
    The challenge must be echoed back as plain text (not JSON).
    """
    logger.info("🔔 Webhook verification request: mode=%s", hub_mode)

    if hub_mode == "subscribe" and hub_verify_token == config.INSTAGRAM_WEBHOOK_VERIFY_TOKEN:
        logger.info("✅ Webhook verified")
        return Response(content=hub_challenge or "", media_type="text/plain")

    logger.error("❌ Webhook verification failed: token mismatch or invalid mode")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid verify token")


@router.post("/instagram")
async def receive_webhook(
    request: Request,
    db: Session = Depends(get_db),
    provider_factory=Depends(get_provider_factory),
    http_client=Depends(get_http_client),
):
    payload = await request.body()

    if config.INSTAGRAM_APP_SECRET and not _verify_signature(
        payload, request.headers.get("x-hub-signature-256")
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid webhook signature"
        )

    try:
        body = json.loads(payload)
    except json.JSONDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON")

    logger.info("📥 Webhook received: object=%s entries=%s", body.get("object"), len(body.get("entry") or []))

    try:
        stats = await process_webhook(db, body, provider_factory, http_client=http_client)
    except Exception as e:
        # Always return 200 to Meta to prevent redelivery storms
        logger.exception("❌ Webhook error: %s", e)
        db.rollback()
        return {"status": "error", "message": str(e)}

    return {"status": "success", **stats}
