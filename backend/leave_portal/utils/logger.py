import logging
import os
from datetime import datetime
from leave_portal.db import get_db, ACTIVITY_LOGS
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging():
    """Configure the root logger once, at application start."""
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def _context_line(head: str, **context) -> str:
    """``head | User: ... | Details: ...`` with empty parts left out."""
    parts = [head] + [f"{label}: {value}" for label, value in context.items() if value]
    return " | ".join(parts)


async def log_event(
    action: str,
    details: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    ip_address: Optional[str] = None
):
    """Write an audit entry to the application log and the ``activity_logs`` collection.

    Audit failures are logged and never propagate to the request.
    """
    logger.info(_context_line(f"Action: {action}", User=user_id, Details=details))
    entry = {
        "action": action,
        "details": details or {},
        "userId": user_id,
        "timestamp": datetime.utcnow(),
        "ipAddress": ip_address,
    }
    try:
        await get_db()[ACTIVITY_LOGS].insert_one(entry)
    except Exception as e:
        logger.error(f"Failed to store activity log for {action}: {e}")


def log_error(message: str, error: Exception, user_id: Optional[str] = None):
    logger.error(_context_line(f"Error: {message}", Exception=error, User=user_id))


# Event type constants for consistency
class EventTypes:
    USER_LOGIN = "user_login"
    USER_REGISTERED = "user_registered"
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    ROLE_UPDATED = "role_updated"

    LEAVE_REQUEST_CREATED = "leave_request_created"
    LEAVE_REQUEST_APPROVED = "leave_request_approved"
    LEAVE_REQUEST_REJECTED = "leave_request_rejected"
    LEAVE_BALANCE_REFUNDED = "leave_balance_refunded"

    HOLIDAY_CREATED = "holiday_created"
    HOLIDAY_UPDATED = "holiday_updated"
    HOLIDAY_DELETED = "holiday_deleted"

    DEPARTMENT_CREATED = "department_created"
    DEPARTMENT_DELETED = "department_deleted"

    AUTH_FAILED = "auth_failed"
