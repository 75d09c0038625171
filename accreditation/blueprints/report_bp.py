"""
Report blueprint: section outline, section tasks and task updates.

Layer contract:
    report_bp → report_service → SqlRepository → db

Endpoints:
    GET   /api/v1/report                   section tree + headline figures
    GET   /api/v1/sections/<id>/tasks      tasks with progress/deadline tiers
    PATCH /api/v1/tasks/<id>               status, blocked, dates, people
    GET   /api/v1/profiles                 active profiles (owner pickers)
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from accreditation.blueprints import register_error_handlers
from accreditation.services import report_service
from accreditation.services.repository import SqlRepository
from accreditation.utils.errors import E, api_error

logger = logging.getLogger(__name__)

report_bp = register_error_handlers(Blueprint("report", __name__, url_prefix="/api/v1"))


@report_bp.route("/report", methods=["GET"])
def get_report():
    """Section tree with progress and counters on every node."""
    return jsonify(report_service.get_report(SqlRepository())), 200


@report_bp.route("/sections/<section_id>/tasks", methods=["GET"])
def list_section_tasks(section_id):
    """Tasks owned directly by a section, each classified on both axes."""
    payload = report_service.get_section_tasks(
        SqlRepository(),
        section_id,
        soon_days=current_app.config["DEADLINE_SOON_DAYS"],
        approaching_days=current_app.config["DEADLINE_APPROACHING_DAYS"],
    )
    return jsonify(payload), 200


@report_bp.route("/tasks/<task_id>", methods=["PATCH"])
def update_task(task_id):
    """Partial task update.

    Body: any of {status, blocked, blocked_reason, start_date, due_date,
    title, description, owner_id, supervisor_id}
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return api_error(E.VALIDATION_REQUIRED, "Request body must be a non-empty JSON object")
    task = report_service.update_task(SqlRepository(), task_id, data)
    return jsonify(task.to_dict()), 200


@report_bp.route("/profiles", methods=["GET"])
def list_profiles():
    profiles = SqlRepository().list_profiles()
    return jsonify({"items": [p.to_dict() for p in profiles], "total": len(profiles)}), 200
