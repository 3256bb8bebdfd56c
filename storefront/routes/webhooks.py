# storefront/routes/webhooks.py
import base64
import hashlib
import hmac
import json
import logging
import time
from typing import Optional

import pydantic
from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session

from storefront.config import Settings, get_settings
from storefront.database import get_users_db
from storefront.errors import InternalError, NotFoundError, ValidationError
from storefront.responses import success_response
from storefront.schemas.user import ProfileCreate, ProfileUpdate
from storefront.services import users as users_service
from storefront.utils.audit import write_log

router = APIRouter(prefix="/api/webhooks", tags=["Webhooks"])
logger = logging.getLogger(__name__)

# Accepted clock skew between the provider and us
SIGNATURE_TOLERANCE_SECONDS = 300


def _secret_bytes(secret: str) -> bytes:
    if secret.startswith("whsec_"):
        return base64.b64decode(secret[len("whsec_"):])
    return secret.encode("utf-8")


def sign_payload(secret: str, msg_id: str, timestamp: str, body: bytes) -> str:
    signed = f"{msg_id}.{timestamp}.".encode("utf-8") + body
    digest = hmac.new(_secret_bytes(secret), signed, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_signature(secret: str, msg_id: str, timestamp: str, signature_header: str, body: bytes,
                     now: Optional[float] = None) -> bool:
    """Verifies a webhook signature header of the form 'v1,<sig> v1,<sig2>'."""
    try:
        ts = int(timestamp)
    except (TypeError, ValueError):
        return False
    now = time.time() if now is None else now
    if abs(now - ts) > SIGNATURE_TOLERANCE_SECONDS:
        return False

    expected = sign_payload(secret, msg_id, timestamp, body)
    for part in (signature_header or "").split():
        version, _, signature = part.partition(",")
        if version == "v1" and hmac.compare_digest(signature, expected):
            return True
    return False


def _primary_email(data: dict) -> Optional[str]:
    addresses = data.get("email_addresses") or []
    if addresses:
        return addresses[0].get("email_address") or None
    return None


@router.post("/identity")
async def identity_webhook(
    request: Request,
    db: Session = Depends(get_users_db),
    settings: Settings = Depends(get_settings),
    svix_id: Optional[str] = Header(None, alias="svix-id"),
    svix_timestamp: Optional[str] = Header(None, alias="svix-timestamp"),
    svix_signature: Optional[str] = Header(None, alias="svix-signature"),
):
    if not settings.IDENTITY_WEBHOOK_SECRET:
        raise InternalError("Webhook secret is not configured")
    if not (svix_id and svix_timestamp and svix_signature):
        raise ValidationError("Missing webhook signature headers", field="headers")

    body = await request.body()
    if not verify_signature(settings.IDENTITY_WEBHOOK_SECRET, svix_id, svix_timestamp, svix_signature, body):
        logger.warning("Identity webhook signature verification failed for message %s", svix_id)
        raise ValidationError("Invalid signature", field="headers")

    try:
        event = json.loads(body)
    except ValueError:
        raise ValidationError("Invalid JSON in request body")
    if not isinstance(event, dict) or not isinstance(event.get("data") or {}, dict):
        raise ValidationError("Invalid JSON in request body")
    event_type, data = event.get("type"), event.get("data") or {}
    user_id = data.get("id")

    try:
        if event_type == "user.created":
            users_service.initialize_profile(db, ProfileCreate(
                id=user_id or "",
                email=_primary_email(data) or "",
                first_name=data.get("first_name") or "",
                last_name=data.get("last_name") or "",
            ))
            logger.info("User profile created for %s", user_id)
        elif event_type == "user.updated":
            updates = ProfileUpdate(
                email=_primary_email(data),
                first_name=data.get("first_name") or "",
                last_name=data.get("last_name") or "",
            )
            try:
                users_service.update_profile(db, user_id, updates)
            except NotFoundError:
                users_service.initialize_profile(db, ProfileCreate(id=user_id or "", **updates.model_dump(
                    include={"email", "first_name", "last_name"})))
            logger.info("User profile updated for %s", user_id)
        elif event_type == "user.deleted":
            logger.info("User %s was deleted at the identity provider", user_id)
        else:
            logger.info("Unhandled identity event type: %s", event_type)
    except pydantic.ValidationError:
        raise ValidationError("Missing required fields: id, email")

    write_log(db, user_id=user_id, action="IDENTITY_WEBHOOK", resource="users", status="SUCCESS",
              meta={"type": event_type, "message_id": svix_id})
    return success_response(message=f"Processed {event_type}")
