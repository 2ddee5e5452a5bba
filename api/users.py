from flask import Blueprint, jsonify, g, abort

from models import storage
from models.user import User
from models.schemas.user import UserOutSchema
from utils.decorators import jwt_required

bp = Blueprint("users", __name__)

user_out_schema = UserOutSchema()


@bp.get("/users/profile")
@jwt_required()
def profile():
    """
    Get current user info.
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
      404:
        description: User no longer exists
    """
    user = storage.get(User, g.current_user_id)
    if user is None:
        abort(404, description="User not found")
    return jsonify({"user": user_out_schema.dump(user)}), 200
