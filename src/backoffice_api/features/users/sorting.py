from __future__ import annotations

from sqlalchemy import func

from backoffice_api.models import User

SORT_FIELDS = {
    "id": (User.id.asc(), User.id.desc()),
    "name": (func.lower(User.name).asc(), func.lower(User.name).desc()),
    "email": (User.email_canonical.asc(), User.email_canonical.desc()),
    "created_at": (User.created_at.asc(), User.created_at.desc()),
    "last_login_at": (
        User.last_login_at.asc().nulls_last(),
        User.last_login_at.desc().nulls_last(),
    ),
    "is_active": (User.is_active.asc(), User.is_active.desc()),
}

DEFAULT_SORT = "name"
ID_FIELD = (User.id.asc(), User.id.desc())

__all__ = ["DEFAULT_SORT", "ID_FIELD", "SORT_FIELDS"]
