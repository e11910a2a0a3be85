import json

from flask import Blueprint, current_app, jsonify, request
from security.rbac import require_roles
from utils.audit import recent_activity

audit_bp = Blueprint("audit", __name__, url_prefix="/activities")


@audit_bp.get("")
@require_roles("ADMIN")
def list_activity():
    default_limit = current_app.config.get("ACTIVITY_LIST_LIMIT", 50)
    limit = request.args.get("limit", type=int) or default_limit
    limit = max(1, min(limit, 500))

    rows = recent_activity(
        limit=limit,
        provider_id=request.args.get("doctorId"),
        facility_id=request.args.get("hospitalId"),
    )

    return jsonify([
        {
            "id": r.id,
            "created_at": r.timestamp.isoformat() if r.timestamp else None,
            "actor_id": r.actor_id,
            "action": r.action,
            "entity": r.entity,
            "entity_id": r.entity_id,
            "doctorId": r.provider_id,
            "patientId": r.subject_id,
            "hospitalId": r.facility_id,
            "ip": r.ip,
            "metadata": json.loads(r.metadata_json) if r.metadata_json else None,
        }
        for r in rows
    ]), 200
