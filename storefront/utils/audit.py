import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.models.log import ActivityLog

logger = logging.getLogger(__name__)


def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", ip=None, meta=None):
    entry = ActivityLog(user_id=user_id, action=action, resource=resource, status=status, ip=ip, meta=meta or {})
    db.add(entry)
    try:
        db.commit()
    except SQLAlchemyError as e:
        # Logged and dropped, the caller keeps its own result
        db.rollback()
        logger.error("Failed to write activity log %s/%s: %s", resource, action, e)


def client_ip(request):
    return request.client.host if request.client else None
