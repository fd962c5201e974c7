"""
Generic CRUD routes.

Every collection exposed by the API follows the same shape: validate the
identifier, run one MongoDB call, and map the outcome to a status code and
a JSON body. ``Resource`` describes what differs between collections and
``build_blueprint`` turns one into a Flask blueprint with five routes:

    GET    /<name>          list every document
    GET    /<name>/<id>     fetch one document
    POST   /<name>          create a document
    PUT    /<name>/<id>     overwrite the document's declared fields
    DELETE /<name>/<id>     remove a document

Collections with an ``owner_field`` stamp the caller's session id on
create and refuse updates and deletes from anyone else.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from bson import ObjectId
from flasgger import swag_from
from flask import Blueprint, jsonify, request
from pydantic import BaseModel, ValidationError
from pymongo.errors import PyMongoError

from .auth_functions import current_user_id, is_owner, login_required
from .cache_functions import build_cache_key, cache_get, cache_set, invalidate_cache
from .db_functions import get_collection, parse_object_id, serialize_document, utc_now
from .docs import operation_spec
from .schemas import format_validation_errors


logger = logging.getLogger(__name__)


def model_fields(model: BaseModel):
    return model.model_dump()


@dataclass
class Resource:
    name: str
    label: str
    schema: type[BaseModel]
    prepare: Callable[[BaseModel], dict] = model_fields
    owner_field: str | None = None
    protected: bool = False
    stamp_created: bool = False
    hidden_fields: tuple = ()
    update_handler: Callable | None = None
    update_schema: type[BaseModel] | None = None

    @property
    def id_key(self):
        return f"{self.label[0].lower()}{self.label[1:]}Id"

    @property
    def noun(self):
        return self.label.lower()

    def serialize(self, document: dict | None):
        return serialize_document(document, self.hidden_fields)

    def list_cache_key(self):
        return build_cache_key(self.name, "all")

    def detail_cache_key(self, item_id: str):
        return build_cache_key(self.name, item_id)


def error_response(message: str, status: int):
    """
    Build the JSON error body shared by every route.

    Args:
        message (str): Human readable error.
        status (int): HTTP status code.

    Returns:
        tuple: Flask response and status code.
    """
    return jsonify({"error": message}), status


def load_body(schema: type[BaseModel]):
    """
    Parse and validate the JSON body of the current request.

    Args:
        schema (type[BaseModel]): Model describing the accepted fields.

    Returns:
        tuple: ``(model, None)`` on success, ``(None, response)`` otherwise.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return None, error_response("Request body must be JSON", 400)
    try:
        return schema.model_validate(payload), None
    except ValidationError as error:
        body = {"error": "Validation failed", "errors": format_validation_errors(error)}
        return None, (jsonify(body), 400)


def owner_value(user_id: str):
    """
    Convert a session user id into the value stored in owner fields.

    Args:
        user_id (str): Identifier from the session.

    Returns:
        ObjectId | str: ObjectId when the id is well formed, the raw string otherwise.
    """
    return parse_object_id(user_id) or user_id


def load_owned_document(resource: Resource, object_id: ObjectId, action: str):
    """
    Load a document and check that the caller owns it.

    Args:
        resource (Resource): Collection description.
        object_id (ObjectId): Identifier of the document.
        action (str): Verb used in the 403 message.

    Returns:
        tuple: ``(document, None)`` when allowed, ``(None, response)`` otherwise.

    Raises:
        PyMongoError: When the lookup fails.
    """
    existing = get_collection(resource.name).find_one({"_id": object_id})
    if not existing:
        return None, error_response(f"{resource.label} not found", 404)
    if not is_owner(existing, resource.owner_field, current_user_id()):
        logger.warning("User %s tried to %s %s %s", current_user_id(), action, resource.noun, object_id)
        return None, error_response(f"You can only {action} your own {resource.noun}", 403)
    return existing, None


def list_documents(resource: Resource):
    cache_key = resource.list_cache_key()
    cached = cache_get(cache_key)
    if cached is not None:
        return jsonify(cached)

    try:
        documents = [resource.serialize(doc) for doc in get_collection(resource.name).find()]
    except PyMongoError:
        logger.exception("Listing %s failed", resource.name)
        return error_response(f"An error occurred while retrieving {resource.name}", 500)

    cache_set(cache_key, documents)
    return jsonify(documents)


def get_document(resource: Resource, object_id: ObjectId):
    cache_key = resource.detail_cache_key(str(object_id))
    cached = cache_get(cache_key)
    if cached is not None:
        return jsonify(cached)

    try:
        document = get_collection(resource.name).find_one({"_id": object_id})
    except PyMongoError:
        logger.exception("Fetching %s %s failed", resource.noun, object_id)
        return error_response(f"An error occurred while retrieving the {resource.noun}", 500)

    if not document:
        return error_response(f"{resource.label} not found", 404)

    serialized = resource.serialize(document)
    cache_set(cache_key, serialized)
    return jsonify(serialized)


def create_document(resource: Resource):
    model, error = load_body(resource.schema)
    if error:
        return error

    document = resource.prepare(model)
    if resource.owner_field:
        document[resource.owner_field] = owner_value(current_user_id())
    if resource.stamp_created:
        document["createdAt"] = utc_now()

    try:
        result = get_collection(resource.name).insert_one(document)
    except PyMongoError:
        logger.exception("Creating %s failed", resource.noun)
        return error_response(f"An error occurred while creating the {resource.noun}", 500)

    invalidate_cache(resource.list_cache_key())
    logger.info("Created %s %s", resource.noun, result.inserted_id)
    body = {"message": f"{resource.label} created successfully", resource.id_key: str(result.inserted_id)}
    return jsonify(body), 201


def replace_document(resource: Resource, object_id: ObjectId):
    """
    Overwrite the declared fields of a document with a validated body.

    Fields outside the schema (owner, OAuth ids, timestamps) are kept as
    they are.

    Args:
        resource (Resource): Collection description.
        object_id (ObjectId): Identifier of the document.

    Returns:
        Response: Flask response with JSON payload and status code.
    """
    model, error = load_body(resource.schema)
    if error:
        return error

    fields = resource.prepare(model)
    try:
        if resource.owner_field:
            _, denied = load_owned_document(resource, object_id, "update")
            if denied:
                return denied
        result = get_collection(resource.name).update_one({"_id": object_id}, {"$set": fields})
    except PyMongoError:
        logger.exception("Updating %s %s failed", resource.noun, object_id)
        return error_response(f"An error occurred while updating the {resource.noun}", 500)

    return update_outcome(resource, object_id, result.matched_count, result.modified_count)


def update_outcome(resource: Resource, object_id: ObjectId, matched: int, modified: int):
    """
    Map the counts of an update to the API response.

    Args:
        resource (Resource): Collection description.
        object_id (ObjectId): Identifier of the document.
        matched (int): Documents matched by the filter.
        modified (int): Documents actually changed.

    Returns:
        Response: 404 when nothing matched, 200 otherwise.
    """
    if matched == 0:
        return error_response(f"{resource.label} not found", 404)

    invalidate_cache(resource.list_cache_key(), resource.detail_cache_key(str(object_id)))
    if modified == 0:
        return jsonify({"message": f"No changes made to the {resource.noun}"})
    return jsonify({"message": f"{resource.label} updated successfully"})


def delete_document(resource: Resource, object_id: ObjectId):
    try:
        if resource.owner_field:
            _, denied = load_owned_document(resource, object_id, "delete")
            if denied:
                return denied
        result = get_collection(resource.name).delete_one({"_id": object_id})
    except PyMongoError:
        logger.exception("Deleting %s %s failed", resource.noun, object_id)
        return error_response(f"An error occurred while deleting the {resource.noun}", 500)

    if result.deleted_count == 0:
        return error_response(f"{resource.label} not found", 404)

    invalidate_cache(resource.list_cache_key(), resource.detail_cache_key(str(object_id)))
    logger.info("Deleted %s %s", resource.noun, object_id)
    return jsonify({"message": f"{resource.label} deleted successfully"})


def build_blueprint(resource: Resource):
    """
    Create the blueprint serving one collection.

    Args:
        resource (Resource): Collection description.

    Returns:
        Blueprint: Blueprint mounted under ``/<resource.name>``.
    """
    bp = Blueprint(resource.name, __name__, url_prefix=f"/{resource.name}")
    guard = login_required if resource.protected else (lambda view: view)
    invalid_id = f"Invalid {resource.label} ID format"

    @bp.route("", methods=["GET"])
    @swag_from(operation_spec(resource, "list"))
    def list_all():
        """List every document in the collection."""
        return list_documents(resource)

    @bp.route("/<item_id>", methods=["GET"])
    @swag_from(operation_spec(resource, "get"))
    def get_single(item_id: str):
        """Fetch one document by id."""
        object_id = parse_object_id(item_id)
        if object_id is None:
            return error_response(invalid_id, 400)
        return get_document(resource, object_id)

    @bp.route("", methods=["POST"])
    @swag_from(operation_spec(resource, "create"))
    @guard
    def create():
        """Create a document."""
        return create_document(resource)

    @bp.route("/<item_id>", methods=["PUT"])
    @swag_from(operation_spec(resource, "update"))
    @guard
    def update(item_id: str):
        """Update a document by id."""
        object_id = parse_object_id(item_id)
        if object_id is None:
            return error_response(invalid_id, 400)
        handler = resource.update_handler or replace_document
        return handler(resource, object_id)

    @bp.route("/<item_id>", methods=["DELETE"])
    @swag_from(operation_spec(resource, "delete"))
    @guard
    def delete(item_id: str):
        """Delete a document by id."""
        object_id = parse_object_id(item_id)
        if object_id is None:
            return error_response(invalid_id, 400)
        return delete_document(resource, object_id)

    return bp
