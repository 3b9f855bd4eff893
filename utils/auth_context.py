from functools import wraps
from flask import g, jsonify, request, current_app

def load_current_actor():
    # identity is resolved upstream (gateway / session service) and trusted as-is
    header = current_app.config.get("ACTOR_HEADER", "X-Actor-Id")
    actor_id = (request.headers.get(header) or "").strip()
    g.actor_id = actor_id[:64] or None

def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "actor_id", None) is None:
            return jsonify(error="Authentication required", code="Unauthenticated"), 401
        return fn(*args, **kwargs)
    return wrapper
