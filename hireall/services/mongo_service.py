"""
MongoDB Service helpers shared by every collection service.

- serialize_doc: make a document JSON-safe (``_id`` -> ``id`` string)
- to_object_id: parse a route id, raising NotFoundError when malformed
- paginate: page/limit slicing with a total count
"""

from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.collection import Collection

from hireall.core.errors import NotFoundError


# ============================================================
# HELPER: Convert ObjectId to string for JSON serialization
# ============================================================

def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    """Convert MongoDB document to JSON-serializable dict."""
    if doc is None:
        return None
    out = {key: value for key, value in doc.items() if key != "_id"}
    if "_id" in doc:
        out = {"id": str(doc["_id"]), **out}
    for key, value in out.items():
        if isinstance(value, ObjectId):
            out[key] = str(value)
    return out


def serialize_docs(docs) -> List[dict]:
    """Convert list of MongoDB documents to JSON-serializable list."""
    return [serialize_doc(doc) for doc in docs]


def to_object_id(value: str, label: str = "Document") -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise NotFoundError(f"{label} not found")


def paginate(
    collection: Collection,
    query: Dict[str, Any],
    page: int,
    limit: int,
    sort: Optional[list] = None,
) -> Dict[str, Any]:
    """Return one page of serialized documents plus paging info."""
    total = collection.count_documents(query)
    cursor = collection.find(query)
    if sort:
        cursor = cursor.sort(sort)
    docs = list(cursor.skip((page - 1) * limit).limit(limit))
    return {
        "items": serialize_docs(docs),
        "total": total,
        "page": page,
        "limit": limit,
        "has_more": page * limit < total,
    }
