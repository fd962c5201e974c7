"""
Interactive API documentation.

``init_docs`` mounts flasgger's Swagger UI at ``/api-docs`` and the
OpenAPI document at ``/api-docs/openapi.json``. Collection routes carry
their operation through ``swag_from(operation_spec(...))``; the auth
routes describe themselves in YAML docstrings.
"""

from flasgger import Swagger
from pydantic import BaseModel


DEFS_PREFIX = "#/$defs/"
SESSION_SECURITY = [{"session": []}]

SWAGGER_TEMPLATE = {
    "info": {
        "title": "Movie Tracker API",
        "description": "Track movies, reviews, watchlists, courses and students.",
        "version": "0.1.0",
    },
    "components": {
        "securitySchemes": {
            "session": {
                "type": "apiKey",
                "in": "cookie",
                "name": "session",
                "description": "Session cookie set by /github/callback",
            }
        }
    },
}


def inline_refs(node, definitions: dict):
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str) and ref.startswith(DEFS_PREFIX):
            return inline_refs(definitions[ref[len(DEFS_PREFIX):]], definitions)
        return {key: inline_refs(value, definitions) for key, value in node.items()}
    if isinstance(node, list):
        return [inline_refs(item, definitions) for item in node]
    return node


def model_schema(model: type[BaseModel]):
    """
    JSON schema of a request model with nested models written inline.

    Args:
        model (type[BaseModel]): Pydantic model validating the body.

    Returns:
        dict: Self-contained JSON schema.
    """
    schema = model.model_json_schema()
    definitions = schema.pop("$defs", {})
    return inline_refs(schema, definitions)


def operation_spec(resource, action: str):
    """
    Describe one generated collection route for flasgger.

    Args:
        resource (Resource): Collection description.
        action (str): One of ``list``, ``get``, ``create``, ``update``, ``delete``.

    Returns:
        dict: OpenAPI operation object.
    """
    spec = {"tags": [resource.name], "responses": {}}
    responses = spec["responses"]

    if action in {"get", "update", "delete"}:
        spec["parameters"] = [
            {
                "name": "item_id",
                "in": "path",
                "required": True,
                "description": f"{resource.label} id, 24 hexadecimal characters",
                "schema": {"type": "string", "pattern": "^[0-9a-fA-F]{24}$"},
            }
        ]
        responses["400"] = {"description": f"Invalid {resource.label} ID format"}
        responses["404"] = {"description": f"{resource.label} not found"}

    if action in {"create", "update"}:
        schema = resource.schema
        if action == "update" and resource.update_schema is not None:
            schema = resource.update_schema
        spec["requestBody"] = {
            "required": True,
            "content": {"application/json": {"schema": model_schema(schema)}},
        }
        responses["400"] = {"description": "Validation failed"}

    if action == "list":
        responses["200"] = {"description": f"Every document in {resource.name}"}
    elif action == "get":
        responses["200"] = {"description": f"The {resource.noun}"}
    elif action == "create":
        responses["201"] = {"description": f"{resource.label} created, new id under {resource.id_key}"}
    elif action == "update":
        responses["200"] = {"description": f"{resource.label} updated, or no changes made"}
    else:
        responses["200"] = {"description": f"{resource.label} deleted"}

    if action in {"create", "update", "delete"}:
        if resource.protected:
            spec["security"] = SESSION_SECURITY
            responses["401"] = {"description": "No session"}
        if resource.owner_field and action != "create":
            responses["403"] = {"description": f"The {resource.noun} belongs to another user"}
        responses["500"] = {"description": "Store failure"}
    return spec


def init_docs(app):
    """
    Mount the Swagger UI and the OpenAPI document.

    Args:
        app (Flask): Application being built.

    Returns:
        Swagger: The flasgger extension.
    """
    config = Swagger.DEFAULT_CONFIG.copy()
    config.update(
        {
            "title": "Movie Tracker API",
            "openapi": "3.0.3",
            "specs": [
                {
                    "endpoint": "openapi",
                    "route": "/api-docs/openapi.json",
                    "rule_filter": lambda rule: True,
                    "model_filter": lambda tag: True,
                }
            ],
            "specs_route": "/api-docs",
        }
    )
    return Swagger(app, config=config, template=SWAGGER_TEMPLATE)
