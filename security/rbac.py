from functools import wraps
from flask import g, jsonify

def has_role(role_name: str) -> bool:
    actor = getattr(g, "actor", None)
    if not actor:
        return False
    return actor.role == role_name

def require_roles(*role_names: str):
    """
    Usage: @require_roles("ADMIN", "DOCTOR")
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            actor = getattr(g, "actor", None)
            if actor is None:
                return jsonify(error="Authentication required"), 401

            if actor.role != "SUPER_ADMIN" and actor.role not in role_names:
                return jsonify(error="Forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
