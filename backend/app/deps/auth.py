from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.exceptions import raise_app_error
from app.core.errors import ErrorCode
from app.core.security import validate_jwt_token
from app.db.session import get_db
from app.models.user import User


security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    claims = validate_jwt_token(
        credentials.credentials,
        required_roles={"user"},
        error_on_invalid=ErrorCode.AUTH_INVALID_TOKEN,
        error_on_expired=ErrorCode.AUTH_INVALID_TOKEN,
        error_on_forbidden=ErrorCode.COMMON_PERMISSION_DENIED,
    )

    try:
        user_id = int(claims.subject)
    except (TypeError, ValueError):
        raise_app_error(ErrorCode.AUTH_INVALID_TOKEN)

    user = db.get(User, user_id)
    if user is None:
        raise_app_error(ErrorCode.AUTH_USER_NOT_FOUND)
    return user


__all__ = ["get_current_user", "get_db", "security"]
