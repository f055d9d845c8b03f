"""User record store backed by a MongoDB collection."""

from __future__ import annotations

import re
from typing import Any, Literal

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from user_registry.logger import get_logger, log_timing
from user_registry.security import verify_password

logger = get_logger(__name__)

SortField = Literal["username", "email", "id"]
SortOrder = Literal["asc", "desc"]

# Public sort keys mapped to document fields
SORTABLE_FIELDS: dict[str, str] = {
    "username": "username",
    "email": "email",
    "id": "_id",
}

WITHOUT_PASSWORD = {"password": 0}


class DuplicateUserError(Exception):
    """Raised when a write would duplicate an existing username or email."""


def _object_id(user_id: str | ObjectId) -> ObjectId | None:
    if isinstance(user_id, ObjectId):
        return user_id
    try:
        return ObjectId(user_id)
    except (InvalidId, TypeError):
        return None


def _to_record(document: dict[str, Any]) -> dict[str, Any]:
    """Convert a stored document into the public record shape."""
    return {
        "id": str(document["_id"]),
        "username": document["username"],
        "email": document["email"],
        "image": document.get("image", ""),
    }


def keyword_filter(keyword: str | None) -> dict[str, Any]:
    """Case-insensitive substring match on username or email."""
    if not keyword:
        return {}
    pattern = re.escape(keyword)
    return {
        "$or": [
            {"username": {"$regex": pattern, "$options": "i"}},
            {"email": {"$regex": pattern, "$options": "i"}},
        ]
    }


class UserStore:
    """CRUD and query operations over the users collection.

    Documents hold ``username``, ``email``, ``password`` (already hashed by the
    caller) and ``image``. Uniqueness of username and email is enforced by the
    indexes created in :meth:`ensure_indexes`.
    """

    def __init__(self, collection: Collection) -> None:
        self.collection = collection

    def ensure_indexes(self) -> None:
        self.collection.create_index([("username", ASCENDING)], unique=True)
        self.collection.create_index([("email", ASCENDING)], unique=True)

    def ping(self) -> None:
        self.collection.database.command("ping")

    def find_by_credentials(self, username: str, password: str) -> dict[str, Any] | None:
        """Return the user whose username and password both match."""
        document = self.collection.find_one({"username": username})
        if document is None or not verify_password(password, document.get("password", "")):
            return None
        return _to_record(document)

    def list(
        self,
        *,
        search: str | None = None,
        sort_by: SortField = "username",
        sort_order: SortOrder = "asc",
        page: int = 1,
        limit: int = 5,
    ) -> tuple[list[dict[str, Any]], int]:
        """Return one page of users plus the total count matching the filter."""
        query = keyword_filter(search.strip() if search else None)
        direction = DESCENDING if sort_order == "desc" else ASCENDING
        sort_spec = [(SORTABLE_FIELDS[sort_by], direction)]
        if sort_by != "id":
            # Tie-breaker keeps pages stable
            sort_spec.append(("_id", ASCENDING))

        with log_timing(
            "user_list", logger=logger, level="debug", page=page, limit=limit
        ) as timing:
            cursor = (
                self.collection.find(query, WITHOUT_PASSWORD)
                .sort(sort_spec)
                .skip((page - 1) * limit)
                .limit(limit)
            )
            records = [_to_record(document) for document in cursor]
            total = self.collection.count_documents(query)
            timing["returned"] = len(records)
            timing["total"] = total
        return records, total

    def get_by_id(self, user_id: str) -> dict[str, Any] | None:
        oid = _object_id(user_id)
        if oid is None:
            return None
        document = self.collection.find_one({"_id": oid}, WITHOUT_PASSWORD)
        return _to_record(document) if document else None

    def insert(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Insert a new user; ``image`` defaults to an empty string."""
        document = {
            "username": fields["username"],
            "email": fields["email"],
            "password": fields["password"],
            "image": fields.get("image") or "",
        }
        try:
            result = self.collection.insert_one(document)
        except DuplicateKeyError as exc:
            raise DuplicateUserError("Username or email already exists") from exc
        document["_id"] = result.inserted_id
        logger.info("User inserted", user_id=str(result.inserted_id))
        return _to_record(document)

    def update_by_id(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        """Apply a partial update; ``None`` values are left untouched."""
        oid = _object_id(user_id)
        if oid is None:
            return None
        changes = {key: value for key, value in fields.items() if value is not None}
        if not changes:
            return self.get_by_id(user_id)
        try:
            document = self.collection.find_one_and_update(
                {"_id": oid},
                {"$set": changes},
                projection=WITHOUT_PASSWORD,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as exc:
            raise DuplicateUserError("Username or email already exists") from exc
        if document is None:
            return None
        logger.info("User updated", user_id=user_id, fields=sorted(changes))
        return _to_record(document)

    def delete_by_id(self, user_id: str) -> bool:
        oid = _object_id(user_id)
        if oid is None:
            return False
        result = self.collection.delete_one({"_id": oid})
        return result.deleted_count == 1

    def search(self, keyword: str) -> list[dict[str, Any]]:
        cursor = self.collection.find(keyword_filter(keyword), WITHOUT_PASSWORD)
        return [_to_record(document) for document in cursor]
