import re
from datetime import datetime
from typing import Optional

from bson import ObjectId


def serialize_mongo(obj):
    """
    Recursively convert MongoDB objects to JSON-safe values
    """
    if isinstance(obj, ObjectId):
        return str(obj)

    if isinstance(obj, datetime):
        return obj.isoformat()

    if isinstance(obj, list):
        return [serialize_mongo(i) for i in obj]

    if isinstance(obj, dict):
        return {k: serialize_mongo(v) for k, v in obj.items()}

    return obj


def to_object_id(value) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def with_id(doc: Optional[dict]) -> Optional[dict]:
    """`_id` -> `id` for API output."""
    if doc is None:
        return None
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    return doc


def exact_ci(value: str) -> dict:
    return {"$regex": f"^{re.escape(value.strip())}$", "$options": "i"}


def contains_ci(value: str) -> dict:
    return {"$regex": re.escape(value.strip()), "$options": "i"}
