"""
Health check blueprint.

Endpoints:
    GET /api/v1/health    liveness plus a database round-trip
"""

import logging
import time

from flask import Blueprint, jsonify
from sqlalchemy.exc import SQLAlchemyError

from accreditation.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1")


@health_bp.route("/health", methods=["GET"])
def health():
    """Always 200 while the process runs; database status is reported, not enforced."""
    checks = {}
    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        checks["database"] = {"status": "ok", "latency_ms": round((time.perf_counter() - t0) * 1000, 1)}
    except SQLAlchemyError as exc:
        db.session.rollback()
        checks["database"] = {"status": "error", "detail": exc.__class__.__name__}
        logger.error("Health check: database failed: %s", exc)
    return jsonify({"status": "ok", "app": "Accreditation Report Tracker", "checks": checks}), 200
