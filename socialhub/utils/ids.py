from typing import Any, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId


def to_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def normalize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is not None and "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc
