"""
Authentication blueprint:
- POST /auth/signup
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- POST /auth/logout-all

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens and long-lived refresh tokens (JWTs via utils.tokens)
- Returns the access token in the body; the refresh token only travels in an
  HttpOnly cookie and is rotated on every use (utils.sessions)
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from api.errors import error_response
from models import storage
from models.user import User
from models.schemas.user import SignupSchema, LoginSchema, UserOutSchema
from utils.decorators import jwt_required
from utils.security import hash_password, verify_password
from utils.sessions import issue_token_pair, rotate_token_pair, logout as revoke_session, logout_all as revoke_all_sessions

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/auth")

signup_schema = SignupSchema()
login_schema = LoginSchema()
user_out_schema = UserOutSchema()


def _set_refresh_cookie(response, refresh_token: str):
    response.set_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        refresh_token,
        max_age=int(current_app.config["REFRESH_TOKEN_EXPIRES"].total_seconds()),
        httponly=True,
        secure=current_app.config["REFRESH_COOKIE_SECURE"],
        samesite="Strict",
        path="/",
    )
    return response


def _clear_refresh_cookie(response):
    response.set_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        "",
        max_age=0,
        httponly=True,
        secure=current_app.config["REFRESH_COOKIE_SECURE"],
        samesite="Strict",
        path="/",
    )
    return response


def _refresh_cookie():
    return request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"]) or None


def _existing_user(email: str, username: str):
    session = storage.get_session()
    return session.query(User).filter(or_(User.email == email, User.username == username)).first()


@bp.post("/signup")
def signup():
    """
    Create an account and start a session.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [email, username, name, password]
          properties:
            email: { type: string }
            username: { type: string }
            name: { type: string }
            password: { type: string }
    responses:
      201:
        description: Created (returns user and accessToken, sets refreshToken cookie)
      400:
        description: User already exists
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = signup_schema.load(payload)

    if _existing_user(data["email"], data["username"]):
        return error_response("USER_EXISTS", "User already exists", 400)

    user = User(
        email=data["email"],
        username=data["username"],
        name=data["name"],
        password_hash=hash_password(data["password"]),
    )
    storage.new(user)
    try:
        storage.save()
    except IntegrityError:
        # a concurrent signup took the email or username after the check above
        return error_response("USER_EXISTS", "User already exists", 400)
    logger.info("User %s signed up", user.id)

    pair = issue_token_pair(user.id, user.role)
    response = jsonify({"user": user_out_schema.dump(user), "accessToken": pair.access_token})
    response.status_code = 201
    return _set_refresh_cookie(response, pair.refresh_token)


@bp.post("/login")
def login():
    """
    Login: returns user and accessToken, sets the refreshToken cookie
    ---
    tags:
      - Auth
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
    responses:
      200:
        description: OK
      401:
        description: Invalid credentials
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)

    session = storage.get_session()
    user: User = session.query(User).filter(User.email == data["email"]).first()
    if not user or not verify_password(data["password"], user.password_hash):
        return error_response("INVALID_CREDENTIALS", "Invalid credentials", 401)

    pair = issue_token_pair(user.id, user.role)
    response = jsonify({"user": user_out_schema.dump(user), "accessToken": pair.access_token})
    return _set_refresh_cookie(response, pair.refresh_token)


@bp.post("/refresh")
def refresh():
    """
    Rotate the refresh token cookie and return a new access token
    ---
    tags:
      - Auth
    responses:
      200:
        description: OK (returns accessToken, sets a new refreshToken cookie)
      401:
        description: Missing, invalid, expired or already used refresh token
    """
    refresh_token = _refresh_cookie()
    if not refresh_token:
        return error_response("NO_REFRESH_TOKEN", "No refresh token provided", 401)

    pair = rotate_token_pair(refresh_token)
    if pair is None:
        return error_response("INVALID_REFRESH_TOKEN", "Invalid or expired refresh token", 401)

    response = jsonify({"accessToken": pair.access_token})
    return _set_refresh_cookie(response, pair.refresh_token)


@bp.post("/logout")
def logout():
    """
    Logout: revokes the refresh token cookie (if any) and clears it
    ---
    tags:
      - Auth
    responses:
      200:
        description: Logged out
    """
    revoke_session(_refresh_cookie())
    response = jsonify({"message": "Logged out successfully"})
    return _clear_refresh_cookie(response)


@bp.post("/logout-all")
@jwt_required()
def logout_all():
    """
    Logout from every device: revokes all refresh tokens of the current user
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out from all devices
      401:
        description: Unauthorized
    """
    revoke_all_sessions(g.current_user_id)
    response = jsonify({"message": "Logged out from all devices"})
    return _clear_refresh_cookie(response)
