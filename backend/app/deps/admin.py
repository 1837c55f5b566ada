from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import raise_app_error
from app.core.errors import ErrorCode
from app.core.security import validate_jwt_token
from app.db.session import get_db
from app.models.admin_user import AdminUser


security = HTTPBearer()


def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> AdminUser:
    """Resolve an ``admin``-role token to an active admin account.

    The token subject is the identity provider's user id, stored on
    ``admin_users.user_id``.
    """

    claims = validate_jwt_token(
        credentials.credentials,
        required_roles={"admin"},
        error_on_invalid=ErrorCode.ADMIN_AUTH_ADMIN_TOKEN_INVALID,
        error_on_expired=ErrorCode.ADMIN_AUTH_ADMIN_TOKEN_INVALID,
        error_on_forbidden=ErrorCode.ADMIN_AUTH_ADMIN_TOKEN_SCOPE_INVALID,
    )

    admin = db.execute(
        select(AdminUser).where(AdminUser.user_id == claims.subject)
    ).scalar_one_or_none()
    if admin is None or not admin.is_active:
        raise_app_error(ErrorCode.ADMIN_AUTH_ADMIN_NOT_FOUND_OR_INACTIVE)
    return admin


__all__ = ["get_current_admin", "get_db", "security"]
