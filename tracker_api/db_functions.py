from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from flask import current_app
from pymongo.collection import Collection
from pymongo.database import Database


def get_db():
    """
    Return the MongoDB database bound to the running application.

    Returns:
        Database: Database handle created by ``create_app``.
    """
    return current_app.extensions["tracker"]["db"]


def get_collection(name: str):
    """
    Return a collection from the application database.

    Args:
        name (str): Collection name.

    Returns:
        Collection: PyMongo collection handle.
    """
    db: Database = get_db()
    collection: Collection = db[name]
    return collection


def is_valid_object_id(value: Any):
    """
    Check whether a value is a well-formed MongoDB identifier.

    Only 24 character hexadecimal strings are accepted; 12 byte values that
    ``ObjectId.is_valid`` would also take are refused.

    Args:
        value (Any): Candidate identifier.

    Returns:
        bool: True when the value can be turned into an ObjectId.
    """
    return isinstance(value, str) and len(value) == 24 and ObjectId.is_valid(value)


def parse_object_id(value: Any):
    """
    Convert an identifier string into an ObjectId.

    Args:
        value (Any): Candidate identifier.

    Returns:
        ObjectId | None: Parsed identifier or None when malformed.
    """
    if not is_valid_object_id(value):
        return None
    return ObjectId(value)


def serialize_value(value: Any):
    """
    Turn BSON values into JSON-friendly ones.

    Args:
        value (Any): Value read from MongoDB.

    Returns:
        Any: Value with ObjectIds as strings and datetimes in ISO 8601.
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.replace(microsecond=0).isoformat() + "Z"
    if isinstance(value, dict):
        return {key: serialize_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [serialize_value(item) for item in value]
    return value


def serialize_document(document: dict | None, hidden_fields: tuple = ()):
    """
    Serialize a MongoDB document to a JSON-friendly dictionary.

    Args:
        document (dict | None): MongoDB document.
        hidden_fields (tuple): Keys that must never leave the API.

    Returns:
        dict: Safe copy with string identifiers.
    """
    if not document:
        return {}
    payload = {key: serialize_value(value) for key, value in document.items() if key not in hidden_fields}
    return payload


def utc_now():
    return datetime.now(timezone.utc)
