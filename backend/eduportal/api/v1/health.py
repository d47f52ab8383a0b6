"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from eduportal.api.deps import json_response, timing
from eduportal.core import extensions

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Report database and session store reachability."""

    db_status = "ok"
    try:
        extensions.db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"

    if extensions.redis_client is None:
        store_status = "unconfigured"
    else:
        try:
            extensions.redis_client.ping()
            store_status = "ok"
        except RedisError:
            current_app.logger.exception("healthcheck.redis_error")
            store_status = "fail"

    healthy = db_status == "ok" and store_status == "ok"
    payload = {
        "status": "ok" if healthy else "degraded",
        "db": db_status,
        "session_store": store_status,
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    return json_response(payload, status=200 if healthy else 503)
