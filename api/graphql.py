"""
GraphQL endpoint (Ariadne, schema-first).
- POST /graphql executes a query with the per-request auth context
- GET  /graphql serves the GraphiQL explorer in debug mode
"""
from __future__ import annotations

import os

from ariadne import graphql_sync, load_schema_from_path, make_executable_schema
from ariadne.explorer import ExplorerGraphiQL
from flask import Blueprint, request, jsonify, abort, current_app

from api.auth import mutation, query
from api.errors import format_graphql_error
from utils.decorators import bearer_token, resolve_current_user

type_defs = load_schema_from_path(os.path.join(os.path.dirname(__file__), "schema.graphql"))
schema = make_executable_schema(type_defs, query, mutation)

explorer_html = ExplorerGraphiQL(title="ByteFood API").html(None)

bp = Blueprint("graphql", __name__)


def build_context(req) -> dict:
    """Runs once per request: anonymous unless a valid bearer token names an existing user."""
    return {"request": req, "user": resolve_current_user(bearer_token(req))}


@bp.get("/graphql")
def graphql_explorer():
    if not current_app.debug:
        abort(404)
    return explorer_html, 200


@bp.post("/graphql")
def graphql_server():
    """
    Execute a GraphQL operation
    ---
    tags:
      - GraphQL
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            query: { type: string }
            variables: { type: object }
            operationName: { type: string }
    responses:
      200:
        description: Execution result (resolver errors are reported in "errors")
      400:
        description: Malformed request or invalid query document
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400, description="Request body must be a JSON object")

    success, result = graphql_sync(
        schema,
        data,
        context_value=build_context(request),
        debug=current_app.config["EXPOSE_ERROR_DETAILS"],
        error_formatter=format_graphql_error,
    )
    return jsonify(result), 200 if success else 400
