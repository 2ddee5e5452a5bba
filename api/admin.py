"""
Admin user management. Every route requires an ADMIN access token.
- GET   /admin/users            search / role filter / pagination
- PATCH /admin/users/<id>/role  set USER or ADMIN
"""
from __future__ import annotations

import logging
import math
from typing import Tuple

from flask import Blueprint, request, jsonify, abort, g
from sqlalchemy import or_

from models import storage
from models.user import User
from models.schemas.user import AdminUserOutSchema, RoleUpdateSchema, UserOutSchema
from utils.decorators import admin_required

logger = logging.getLogger(__name__)

MAX_LIMIT = 100

bp = Blueprint("admin", __name__, url_prefix="/admin")

admin_user_list_schema = AdminUserOutSchema(many=True)
role_update_schema = RoleUpdateSchema()
user_out_schema = UserOutSchema()


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", "50"))
        page = max(page, 1)
        limit = max(1, min(limit, MAX_LIMIT))
        return page, limit
    except ValueError:
        abort(400, description="page and limit must be integers")


@bp.get("/users")
@admin_required()
def list_users():
    """
    List users (admin)
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - { in: query, name: search, type: string }
      - { in: query, name: role, type: string, enum: [ALL, USER, ADMIN] }
      - { in: query, name: page, type: integer }
      - { in: query, name: limit, type: integer }
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
      403: { description: Admin access required }
    """
    page, limit = parse_pagination()
    search = request.args.get("search", "").strip()
    role = request.args.get("role", "").strip().upper()

    query = storage.get_session().query(User)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(User.name.ilike(pattern), User.email.ilike(pattern), User.username.ilike(pattern))
        )
    if role and role != "ALL":
        query = query.filter(User.role == role)

    total = query.count()
    rows = query.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return jsonify(
        {
            "users": admin_user_list_schema.dump(rows),
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": math.ceil(total / limit),
            },
        }
    ), 200


@bp.patch("/users/<user_id>/role")
@admin_required()
def update_role(user_id: str):
    """
    Set a user's role (admin). Takes effect on the user's next token refresh.
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - { in: path, name: user_id, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
          properties:
            role: { type: string, enum: [USER, ADMIN] }
    responses:
      200: { description: OK }
      403: { description: Admin access required }
      404: { description: User not found }
      422: { description: Invalid role }
    """
    data = role_update_schema.load(request.get_json(silent=True) or {})
    user = storage.get(User, user_id)
    if user is None:
        abort(404, description="User not found")

    user.role = data["role"]
    user.save()
    logger.info("Admin %s set role of user %s to %s", g.current_user_id, user.id, user.role)
    return jsonify(user_out_schema.dump(user)), 200
