"""
Session blueprint:
- POST /register
- POST /login                   -> {token, refresh_token, user}
- POST /session/refresh         (access token)  -> {token, user}
- POST /session/authenticate    (refresh token) -> {token, refresh_token, user}
- POST /session/new             (access token)  -> {token, refresh_token, user}
- POST /session/logout          (access token)  -> {success}

Credential failures on every route collapse to the same 401 body.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, current_app

from models.schemas.session import LoginSchema, DeviceSchema
from models.schemas.user import UserCreateSchema, UserOutSchema
from utils.decorators import jwt_required, refresh_token_required
from utils.session import SessionOrchestrator, SessionResult

bp = Blueprint("session", __name__)

login_schema = LoginSchema()
device_schema = DeviceSchema()
user_create_schema = UserCreateSchema()
user_out_schema = UserOutSchema()


def current_session() -> SessionOrchestrator:
    return current_app.extensions["session"]


def session_response(result: SessionResult):
    body = {
        "token": result.token,
        "user": user_out_schema.dump(result.user),
    }
    if result.refresh_token:
        body["refresh_token"] = result.refresh_token
    return jsonify(body), 200


@bp.post("/register")
def register():
    """
    Register a new user.
    ---
    tags:
      - Session
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            display_name: { type: string }
            password: { type: string }
            preferences:
              type: object
              properties:
                languages:
                  type: array
                  items: { type: string, enum: [CN, JA, KR, ZH, DE] }
                public_profile: { type: boolean }
    responses:
      201:
        description: Created
      400:
        description: Validation error
      409:
        description: Email already registered
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})
    current_session().register(
        data["email"],
        data["display_name"],
        data["password"],
        preferences=data.get("preferences"),
    )
    return jsonify({"success": True}), 201


@bp.post("/login")
def login():
    """
    Login: returns an access token, a refresh token for the device, and the user
    ---
    tags:
      - Session
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
             device_id: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      400:
        description: Validation error
      401:
        description: Unauthorized
    """
    data = login_schema.load(request.get_json(silent=True) or {})
    result = current_session().login(data["email"], data["password"], data["device_id"])
    return session_response(result)


@bp.post("/session/refresh")
@jwt_required()
def refresh():
    """
    Exchange a still-valid access token for a fresh one
    ---
    tags:
      - Session
    security:
      - Bearer: []
    responses:
      200:
        description: OK (returns a new access token)
      401:
        description: Unauthorized or session invalidated
    """
    return session_response(current_session().refresh(g.identity))


@bp.post("/session/authenticate")
@refresh_token_required()
def authenticate():
    """
    Obtain a new access token with a refresh token (Authorization: Bearer <refresh token>)
    ---
    tags:
      - Session
    security:
      - Bearer: []
    responses:
      200:
        description: OK (returns a new access token and, when rotating, a new refresh token)
      401:
        description: Unauthorized
    """
    return session_response(current_session().reauthenticate(g.refresh_claims, g.refresh_token))


@bp.post("/session/new")
@jwt_required()
def new_refresh_token():
    """
    Create a refresh token for a device of the authenticated user
    ---
    tags:
      - Session
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             device_id: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Unauthorized
    """
    data = device_schema.load(request.get_json(silent=True) or {})
    return session_response(current_session().create_refresh_token(g.identity, data["device_id"]))


@bp.post("/session/logout")
@jwt_required()
def logout():
    """
    Invalidate the refresh token of a device
    ---
    tags:
      - Session
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             device_id: { type: string }
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    data = device_schema.load(request.get_json(silent=True) or {})
    current_session().logout(g.identity, data["device_id"])
    return jsonify({"success": True}), 200
