from __future__ import annotations

from typing import Tuple

from flask import Blueprint, request, jsonify, g, abort, current_app

from models.credential_store import CredentialStore
from models.enums import Role
from models.schemas.user import UserUpdateSchema, UserOutSchema, UserListOutSchema
from utils.decorators import AuthorizationGuard, jwt_required, roles_required

MAX_LIMIT = 100

bp = Blueprint("users", __name__)

user_update_schema = UserUpdateSchema()
user_out_schema = UserOutSchema()
user_list_out_schema = UserListOutSchema(many=True)


def credential_store() -> CredentialStore:
    return current_app.extensions["credential_store"]


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", "20"))
        page = max(page, 1)
        limit = max(1, min(limit, MAX_LIMIT))
        return page, limit
    except ValueError:
        abort(400, description="page and limit must be integers")


@bp.get("/users")
@roles_required([Role.ADMIN])
def list_users():
    """
    List all users - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: query, name: page, type: integer }
      - { in: query, name: limit, type: integer }
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
      403: { description: Forbidden }
    """
    page, limit = parse_pagination()
    store = credential_store()
    total = store.count()
    rows = store.all(offset=(page - 1) * limit, limit=limit)
    return jsonify(
        {
            "users": user_list_out_schema.dump(rows),
            "meta": {"page": page, "limit": limit, "total": total},
        }
    ), 200


@bp.get("/users/me")
@jwt_required()
def me():
    """
    Get current user info
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    user = credential_store().get(g.identity.id)
    return jsonify(user_out_schema.dump(user)), 200


@bp.get("/users/<int:user_id>")
@jwt_required()
def get_user(user_id: int):
    """
    Get a user profile - owner or admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: path, name: user_id, type: integer, required: true }
    responses:
      200: { description: OK }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    AuthorizationGuard.authorize(g.identity, user_id)
    user = credential_store().get(user_id)
    return jsonify(user_out_schema.dump(user)), 200


@bp.put("/users/<int:user_id>")
@jwt_required()
def update_user(user_id: int):
    """
    Update a user - owner or admin. Only admins may change roles.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - { in: path, name: user_id, type: integer, required: true }
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            display_name: { type: string }
            role: { type: string, enum: [USER, ADMIN, DISABLED] }
            preferences: { type: object }
    responses:
      200: { description: OK }
      400: { description: Validation error }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    identity = g.identity
    AuthorizationGuard.authorize(identity, user_id)

    data = user_update_schema.load(request.get_json(silent=True) or {})
    store = credential_store()
    user = store.get(user_id)

    role = AuthorizationGuard.authorize_role_change(identity, user.role, data.get("role"))

    if "email" in data:
        user.email = data["email"]
    if "display_name" in data:
        user.display_name = data["display_name"]
    if "preferences" in data:
        user.preferences = data["preferences"]
    user.role = role

    store.update(user)
    return jsonify({"success": True, "user": user_out_schema.dump(user)}), 200
