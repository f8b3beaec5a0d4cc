"""
MongoDB access.

`db` is the application's database handle, or None when DATABASE_URL is not
configured. Route handlers get it through the get_db() dependency.
"""

import logging
from typing import Any, Dict, Optional

from bson import ObjectId
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import get_settings
from errors import InternalError

logger = logging.getLogger(__name__)

USERS = "user"
PRODUCTS = "product"
CARTS = "cart"


def connect(url: Optional[str], name: str) -> Optional[Database]:
    if not url:
        logger.warning("DATABASE_URL is not set; database is unavailable")
        return None
    # MongoClient connects lazily, so this does not block on a dead server
    client = MongoClient(url)
    return client[name]


_settings = get_settings()
db = connect(_settings.database_url, _settings.database_name)


def get_db() -> Database:
    if db is None:
        raise InternalError("Database not configured")
    return db


def ensure_indexes(database: Database) -> None:
    database[USERS].create_index([("email", ASCENDING)], unique=True)
    database[CARTS].create_index([("user_id", ASCENDING)], unique=True)
    database[PRODUCTS].create_index([("category", ASCENDING), ("price", ASCENDING)])


def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse a path/claim id, returning None for anything that is not an ObjectId."""
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


def serialize_doc(doc: Dict[str, Any]) -> Dict[str, Any]:
    if not doc:
        return doc
    doc = dict(doc)
    _id = doc.pop("_id", None)
    if _id is not None:
        doc["id"] = str(_id)
    for k, v in list(doc.items()):
        if isinstance(v, ObjectId):
            doc[k] = str(v)
    return doc
