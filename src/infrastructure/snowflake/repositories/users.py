"""
Snowflake repository for members.

The application code never writes SQL directly - it asks the repository
for what it needs in domain terms.
"""

import logging
from datetime import datetime
from typing import Optional

from src.core.community.models import AdminWarning, User, normalize_username

from .documents import DocumentTable, SnowflakeConnection

logger = logging.getLogger(__name__)


class UserNotFoundError(Exception):
    """Raised when a requested member doesn't exist."""
    pass


def user_to_document(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "password_hash": user.password_hash,
        "is_admin": user.is_admin,
        "banned": user.banned,
        "verified": user.verified,
        "subscribers": list(user.subscribers),
        "profile_pic": user.profile_pic,
        "background_pic": user.background_pic,
        "about": user.about,
        "warnings": [
            {"message": w.message, "date": w.date.isoformat()}
            for w in user.warnings
        ],
        "created_at": user.created_at.isoformat(),
    }


def user_from_document(doc: dict) -> User:
    user = User(
        id=doc["id"],
        username=doc["username"],
        email=doc["email"],
        password_hash=doc.get("password_hash", ""),
        is_admin=doc.get("is_admin", False),
        banned=doc.get("banned", False),
        verified=doc.get("verified", False),
        subscribers=list(doc.get("subscribers", [])),
        about=doc.get("about", ""),
        warnings=[
            AdminWarning(message=w["message"], date=datetime.fromisoformat(w["date"]))
            for w in doc.get("warnings", [])
        ],
        created_at=datetime.fromisoformat(doc["created_at"]),
    )
    # keep the model defaults when older documents lack these
    if doc.get("profile_pic"):
        user.profile_pic = doc["profile_pic"]
    if doc.get("background_pic"):
        user.background_pic = doc["background_pic"]
    return user


class UserRepository:
    """Repository for member persistence."""

    def __init__(self, connection: SnowflakeConnection) -> None:
        self._table = DocumentTable(connection, "users")

    def save(self, user: User) -> None:
        self._table.put(user.id, user_to_document(user))

    def get(self, user_id: str) -> User:
        doc = self._table.get(user_id)
        if doc is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return user_from_document(doc)

    def find_by_username(self, username: str) -> Optional[User]:
        docs = self._table.find_by("username", normalize_username(username))
        return user_from_document(docs[0]) if docs else None

    def list_all(self) -> list[User]:
        return [user_from_document(doc) for doc in self._table.all()]

    def delete(self, user_id: str) -> bool:
        deleted = self._table.delete(user_id)
        if deleted:
            logger.info("Deleted user", extra={"user_id": user_id})
        return deleted
