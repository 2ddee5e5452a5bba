import logging
from datetime import datetime, timezone

from flask import Blueprint
from sqlalchemy.exc import SQLAlchemyError

from models import storage

bp = Blueprint("health", __name__)

SERVICE_NAME = "social-media-app"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@bp.get("/health")
def health():
    """
    Health check (no database round-trip)
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            status:
              type: string
              example: healthy
    """
    return {"status": "healthy", "timestamp": _timestamp(), "service": SERVICE_NAME}, 200


@bp.get("/health/detailed")
def health_detailed():
    """
    Health check including database connectivity
    ---
    tags:
      - Health
    responses:
      200:
        description: API and database are up
      503:
        description: Database unreachable
    """
    try:
        storage.ping()
    except SQLAlchemyError as exc:
        logging.exception("Health check failed", exc_info=exc)
        return {
            "status": "unhealthy",
            "timestamp": _timestamp(),
            "service": SERVICE_NAME,
            "database": "disconnected",
        }, 503
    return {
        "status": "healthy",
        "timestamp": _timestamp(),
        "service": SERVICE_NAME,
        "database": "connected",
    }, 200
