# Overview: Flask API routes for the sync run log; read-only JSON views of recent batches.

from flask import Blueprint, jsonify, request

from ..services import sync_log_service

sync_bp = Blueprint("sync", __name__, url_prefix="/api/sync")


@sync_bp.get("/runs")
def list_runs_route():
    """
    Recent sync batches, newest first.

    Query params:
    - limit: number of batches (default 20, max 200)
    """
    try:
        limit = int(request.args.get("limit", 20))
    except ValueError:
        return jsonify({"error": "limit must be an integer"}), 400
    if limit < 1:
        return jsonify({"error": "limit must be >= 1"}), 400

    batches = sync_log_service.list_recent_batches(limit=limit)
    return jsonify({"batches": batches, "count": len(batches)}), 200


@sync_bp.get("/runs/<batch_id>")
def get_run_route(batch_id: str):
    """All run log entries of one batch, envelope first."""
    entries = sync_log_service.get_batch_entries(batch_id)
    if not entries:
        return jsonify({"error": "Sync batch not found"}), 404
    return jsonify({"batch_id": batch_id, "entries": [e.to_dict() for e in entries]}), 200
