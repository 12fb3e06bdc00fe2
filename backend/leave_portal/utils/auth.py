from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from leave_portal.db import get_db, USERS
from leave_portal.services.auth_service import decode_access_token
from bson import ObjectId
from typing import Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def resolve_token_user(token: str) -> Optional[dict]:
    """Return the user document a bearer token belongs to, or None."""
    try:
        payload = decode_access_token(token)
    except JWTError:
        return None

    user_id = payload.get("sub")
    logger.debug("Validating token for user %s", user_id)
    if not user_id or not ObjectId.is_valid(user_id):
        return None

    db = get_db()
    return await db[USERS].find_one({"_id": ObjectId(user_id)})


async def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)):
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _credentials_exception()

    user = await resolve_token_user(credentials.credentials)
    if user is None:
        raise _credentials_exception()
    return user


def require_roles(*roles: str, detail: str = "Insufficient permissions"):
    """Dependency factory answering 403 unless the caller holds one of ``roles``."""
    allowed = {getattr(role, "value", role) for role in roles}

    def role_checker(current_user: dict = Depends(get_current_user)):
        if current_user.get("role") not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=detail
            )
        return current_user
    return role_checker


# Role-specific dependencies
require_admin = require_roles("admin", detail="Admin access required")
