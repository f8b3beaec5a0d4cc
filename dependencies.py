"""
Request dependencies guarding protected routes.

get_current_user authenticates the bearer token and loads its user;
require_roles layers a role check on top of it.
"""

import logging
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, Header, Request
from pymongo.database import Database

from config import Settings, get_settings
from database import USERS, get_db, serialize_doc, to_object_id
from errors import AuthenticationError, AuthorizationError
from security import InvalidTokenError, TokenExpiredError, decode_access_token

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

# The password hash never leaves the store on user lookups
PUBLIC_USER_PROJECTION = {"password_hash": 0}


def find_user_by_id(db: Database, user_id: str) -> Optional[Dict[str, Any]]:
    obj_id = to_object_id(user_id)
    if obj_id is None:
        return None
    user = db[USERS].find_one({"_id": obj_id}, PUBLIC_USER_PROJECTION)
    return serialize_doc(user) if user else None


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    token = extract_bearer_token(authorization)
    if not token:
        raise AuthenticationError("No token, authorization denied")
    try:
        user_id = decode_access_token(token, settings)
    except TokenExpiredError:
        logger.info("Rejected expired token on %s", request.url.path)
        raise AuthenticationError("Token expired")
    except InvalidTokenError:
        logger.info("Rejected invalid token on %s", request.url.path)
        raise AuthenticationError("Invalid token")

    user = find_user_by_id(db, user_id)
    if not user:
        raise AuthenticationError("User not found")
    request.state.user = user
    return user


def require_roles(*roles: str) -> Callable[..., Dict[str, Any]]:
    allowed = frozenset(roles)

    def role_gate(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        role = current_user.get("role", "user")
        if role not in allowed:
            logger.warning("User %s with role %s denied (needs one of %s)", current_user.get("id"), role, sorted(allowed))
            raise AuthorizationError(f"User role {role} is not authorized to access this route")
        return current_user

    return role_gate


require_admin = require_roles("admin")
