from __future__ import annotations

from flask import Blueprint, request, jsonify, g

from models import storage
from models.log import Log
from models.schemas.log import LogCreateSchema, LogUpdateSchema, LogFilterSchema, LogOutSchema
from utils.decorators import AuthorizationGuard, jwt_required
from utils.exceptions import NotFoundError

PAGE_SIZE = 30

bp = Blueprint("logs", __name__)

log_create_schema = LogCreateSchema()
log_update_schema = LogUpdateSchema()
log_filter_schema = LogFilterSchema()
log_out_schema = LogOutSchema()
logs_out_schema = LogOutSchema(many=True)


def get_owned_log(log_id: int) -> Log:
    """Fetch a live log and apply the owner-or-admin rule."""
    log = storage.get(Log, log_id)
    if log is None or log.is_deleted:
        raise NotFoundError(f"no log found with id {log_id}")
    AuthorizationGuard.authorize(g.identity, log.user_id)
    return log


def apply_filters(query, filters: dict):
    if "language" in filters:
        query = query.filter(Log.language == filters["language"])
    if "date" in filters:
        query = query.filter(Log.date == filters["date"])
    if "from_" in filters:
        query = query.filter(Log.date >= filters["from_"])
    if "until" in filters:
        query = query.filter(Log.date <= filters["until"])
    return query


@bp.get("/logs")
@jwt_required()
def list_logs():
    """
    List logs of the current user, newest first (admins may pass user_id)
    ---
    tags:
      - Logs
    security:
      - Bearer: []
    parameters:
      - { in: query, name: language, type: string }
      - { in: query, name: date, type: string, format: date }
      - { in: query, name: from, type: string, format: date }
      - { in: query, name: until, type: string, format: date }
      - { in: query, name: page, type: integer }
      - { in: query, name: user_id, type: integer }
    responses:
      200: { description: OK }
      403: { description: Forbidden }
    """
    filters = log_filter_schema.load(request.args.to_dict())
    owner_id = filters.get("user_id", g.identity.id)
    AuthorizationGuard.authorize(g.identity, owner_id)

    query = storage.get_session().query(Log).filter(Log.user_id == owner_id, Log.deleted_at.is_(None))
    query = apply_filters(query, filters)
    page = filters["page"]
    rows = (
        query.order_by(Log.date.desc(), Log.id.desc())
        .offset((page - 1) * PAGE_SIZE)
        .limit(PAGE_SIZE)
        .all()
    )
    return jsonify({"logs": logs_out_schema.dump(rows), "meta": {"page": page, "limit": PAGE_SIZE}}), 200


@bp.post("/logs")
@jwt_required()
def create_log():
    """
    Record an activity log for the current user
    ---
    tags:
      - Logs
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            language: { type: string, enum: [CN, JA, KR, ZH, DE] }
            date: { type: string, format: date }
            duration: { type: integer, minimum: 1 }
            activity: { type: string, enum: [FLASHCARDS, TEXTBOOK, READING, LISTENING, TRANSLATION, GRAMMAR, OTHER] }
            notes: { type: object }
    responses:
      201: { description: Created }
      400: { description: Validation error }
    """
    data = log_create_schema.load(request.get_json(silent=True) or {})
    log = Log(user_id=g.identity.id, **data)
    log.save()
    return jsonify(log_out_schema.dump(log)), 201


@bp.get("/logs/<int:log_id>")
@jwt_required()
def get_log(log_id: int):
    """
    Get a single log - owner or admin
    ---
    tags:
      - Logs
    security:
      - Bearer: []
    parameters:
      - { in: path, name: log_id, type: integer, required: true }
    responses:
      200: { description: OK }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    return jsonify(log_out_schema.dump(get_owned_log(log_id))), 200


@bp.put("/logs/<int:log_id>")
@jwt_required()
def update_log(log_id: int):
    """
    Update a log - owner or admin
    ---
    tags:
      - Logs
    security:
      - Bearer: []
    parameters:
      - { in: path, name: log_id, type: integer, required: true }
      - { in: body, name: body, schema: { type: object } }
    responses:
      200: { description: OK }
      400: { description: Validation error }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    log = get_owned_log(log_id)
    data = log_update_schema.load(request.get_json(silent=True) or {})
    for key, value in data.items():
        setattr(log, key, value)
    log.save()
    return jsonify(log_out_schema.dump(log)), 200


@bp.delete("/logs/<int:log_id>")
@jwt_required()
def delete_log(log_id: int):
    """
    Soft delete a log - owner or admin
    ---
    tags:
      - Logs
    security:
      - Bearer: []
    parameters:
      - { in: path, name: log_id, type: integer, required: true }
    responses:
      200: { description: OK }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    get_owned_log(log_id).soft_delete()
    return jsonify({"success": True}), 200
