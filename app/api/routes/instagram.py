import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.models.instagram_account import InstagramAccount
from app.models.webhook_event import WebhookEvent
from app.schemas.instagram import InstagramAccountCreate, InstagramAccountResponse, WebhookEventResponse
from app.utils.encryption import TokenDecryptionError, encrypt_token, decrypt_token
from app.utils.instagram_api import get_webhook_status

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/accounts", response_model=InstagramAccountResponse, status_code=status.HTTP_201_CREATED)
def connect_account(account_data: InstagramAccountCreate, db: Session = Depends(get_db)):
    existing = db.query(InstagramAccount).filter(
        InstagramAccount.instagram_user_id == account_data.instagram_user_id
    ).first()

    if existing:
        # Reconnecting refreshes the token and reactivates the account
        existing.username = account_data.username
        existing.encrypted_access_token = encrypt_token(account_data.access_token)
        existing.is_active = True
        db.commit()
        db.refresh(existing)
        logger.info("🔄 Reconnected Instagram account %s", existing.username)
        return existing

    account = InstagramAccount(
        username=account_data.username,
        instagram_user_id=account_data.instagram_user_id,
        encrypted_access_token=encrypt_token(account_data.access_token),
        is_active=True
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info("✅ Connected Instagram account %s", account.username)
    return account


@router.get("/accounts", response_model=List[InstagramAccountResponse])
def list_accounts(db: Session = Depends(get_db)):
    return db.query(InstagramAccount).order_by(InstagramAccount.id).all()


@router.get("/accounts/{account_id}/webhook-status")
def account_webhook_status(account_id: int, db: Session = Depends(get_db)):
    account = db.query(InstagramAccount).filter(InstagramAccount.id == account_id).first()
    if not account:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Instagram account not found"
        )

    try:
        access_token = decrypt_token(account.encrypted_access_token)
    except TokenDecryptionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    try:
        return get_webhook_status(account.instagram_user_id, access_token)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e)
        )


@router.get("/webhook-events", response_model=List[WebhookEventResponse])
def list_webhook_events(account_id: int = None, limit: int = 50, db: Session = Depends(get_db)):
    query = db.query(WebhookEvent)
    if account_id:
        query = query.filter(WebhookEvent.account_id == account_id)
    return query.order_by(WebhookEvent.created_at.desc(), WebhookEvent.id.desc()).limit(limit).all()
