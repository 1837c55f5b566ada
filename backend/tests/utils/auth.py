from __future__ import annotations

from app.core.security import create_access_token
from app.models.admin_user import AdminUser
from app.models.user import User


def admin_auth_header(admin: AdminUser) -> dict[str, str]:
    token = create_access_token(admin.user_id, extra={"role": "admin"}, expires_delta_minutes=15)
    return {"Authorization": f"Bearer {token}"}


def user_auth_header(user: User) -> dict[str, str]:
    token = create_access_token(str(user.id), extra={"role": "user"}, expires_delta_minutes=15)
    return {"Authorization": f"Bearer {token}"}


__all__ = ["admin_auth_header", "user_auth_header"]
