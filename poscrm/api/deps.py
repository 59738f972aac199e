from fastapi import Depends, Request
from sqlalchemy.orm import Session
from poscrm.application.errors import AuthenticationError, AuthorizationError
from poscrm.application.security import decode_access_token
from poscrm.core.logging_config import set_request_context
from poscrm.domain.models import User
from poscrm.infrastructure.db import get_db

BEARER_PREFIX = "Bearer "

def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise AuthenticationError("Access token required")
    token_data = decode_access_token(auth_header.split(" ", 1)[1])
    if not token_data or not str(token_data.get("sub", "")).isdigit():
        raise AuthenticationError("Invalid or expired token")
    user = db.get(User, int(token_data["sub"]))
    if user is None:
        raise AuthenticationError("Invalid or expired token")
    set_request_context(user_id=str(user.id))
    return user

def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise AuthorizationError("Admin access required")
    return user
