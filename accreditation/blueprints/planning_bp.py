"""
Planning blueprint: project-phase groups and task links.

Layer contract:
    planning_bp → group_service / TaskLinkRegistry → SqlRepository → db

Endpoints:
    GET    /api/v1/plan                               group tree + top-line
    POST   /api/v1/groups                             create (sub-)group
    PUT    /api/v1/groups/<id>                        edit number/title/description/owner
    DELETE /api/v1/groups/<id>                        delete (409 when fixed)
    GET    /api/v1/groups/<id>/tasks                  linked tasks + breakdown
    POST   /api/v1/groups/<id>/tasks                  link {"task_id": ...}
    DELETE /api/v1/groups/<id>/tasks/<task_id>        unlink
    GET    /api/v1/groups/<id>/available-tasks        link picker pool
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from accreditation.blueprints import register_error_handlers
from accreditation.services import group_service
from accreditation.services.repository import SqlRepository
from accreditation.services.task_links import TaskLinkRegistry
from accreditation.utils.errors import E, api_error
from accreditation.utils.helpers import parse_bool

logger = logging.getLogger(__name__)

planning_bp = register_error_handlers(Blueprint("planning", __name__, url_prefix="/api/v1"))


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


# ── Plan ─────────────────────────────────────────────────────────────────────


@planning_bp.route("/plan", methods=["GET"])
def get_plan():
    """Query params: include_tasks (bool), embeds linked tasks per group."""
    include_tasks = parse_bool(request.args.get("include_tasks"))
    return jsonify(group_service.get_plan(SqlRepository(), include_tasks=include_tasks)), 200


# ── Groups ───────────────────────────────────────────────────────────────────


@planning_bp.route("/groups", methods=["POST"])
def create_group():
    """Body: {title, parent_id?, number?, description?, owner_id?, task_ids?}"""
    data = _json_body()
    if data is None:
        return api_error(E.VALIDATION_REQUIRED, "Request body must be a JSON object")
    title = data.get("title")
    if title is None or (isinstance(title, str) and not title.strip()):
        return api_error(E.VALIDATION_REQUIRED, "title is required")
    group = group_service.create_group(SqlRepository(), data)
    return jsonify(group.to_dict()), 201


@planning_bp.route("/groups/<group_id>", methods=["PUT"])
def update_group(group_id):
    data = _json_body()
    if data is None:
        return api_error(E.VALIDATION_REQUIRED, "Request body must be a JSON object")
    group = group_service.update_group(SqlRepository(), group_id, data)
    return jsonify(group.to_dict()), 200


@planning_bp.route("/groups/<group_id>", methods=["DELETE"])
def delete_group(group_id):
    removed = group_service.delete_group(SqlRepository(), group_id)
    return jsonify({"deleted": removed}), 200


# ── Links ────────────────────────────────────────────────────────────────────


@planning_bp.route("/groups/<group_id>/tasks", methods=["GET"])
def list_group_tasks(group_id):
    return jsonify(group_service.get_group_detail(SqlRepository(), group_id)), 200


@planning_bp.route("/groups/<group_id>/tasks", methods=["POST"])
def link_task(group_id):
    """Body: {"task_id": ...}. 201 when a link was created, 200 when it existed."""
    data = _json_body() or {}
    task_id = data.get("task_id")
    if not task_id:
        return api_error(E.VALIDATION_REQUIRED, "task_id is required")
    created = TaskLinkRegistry(SqlRepository()).link_task(group_id, str(task_id))
    return jsonify({"group_id": group_id, "task_id": str(task_id), "created": created}), (
        201 if created else 200
    )


@planning_bp.route("/groups/<group_id>/tasks/<task_id>", methods=["DELETE"])
def unlink_task(group_id, task_id):
    removed = TaskLinkRegistry(SqlRepository()).unlink_task(group_id, task_id)
    return jsonify({"group_id": group_id, "task_id": task_id, "removed": removed}), 200


@planning_bp.route("/groups/<group_id>/available-tasks", methods=["GET"])
def available_tasks(group_id):
    """Unlinked tasks for the picker.

    Query params: search, status (not_started|in_progress|completed|all),
    section_id (level-1 section), limit (positive integer)
    """
    registry = TaskLinkRegistry(SqlRepository())
    registry.require_group(group_id)
    limit = current_app.config["AVAILABLE_TASKS_LIMIT"]
    if request.args.get("limit"):
        limit = request.args.get("limit", type=int)
        if limit is None or limit < 1:
            return api_error(E.VALIDATION_INVALID, "limit must be a positive integer")
    matched = registry.available_tasks(
        search=request.args.get("search"),
        status_bucket=request.args.get("status"),
        section_id=request.args.get("section_id") or None,
    )
    # total counts every match; items is the first page of them
    return jsonify({"items": [t.to_dict() for t in matched[:limit]], "total": len(matched)}), 200
