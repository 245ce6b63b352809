# backend/utils/audit.py
import logging
from typing import Optional

from sqlalchemy.orm import Session
from models.log import Log

logger = logging.getLogger("audit")


def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", ip=None, meta=None):
    """Persist an audit entry. Failures and warnings also go to the application log."""
    entry = Log(user_id=user_id, action=action, resource=resource, status=status, ip=ip, meta=meta or {})
    db.add(entry)
    db.commit()
    if status != "SUCCESS":
        logger.warning("%s %s on %s by user %s: %s", action, status, resource, user_id, meta or {})


def client_ip(request) -> Optional[str]:
    # TestClient and some proxies leave request.client empty
    return request.client.host if request is not None and request.client else None
