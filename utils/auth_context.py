from functools import wraps

from flask import g, jsonify

from models.user import User
from security.session import get_session_from_request
from utils.roles import primary_role


def load_current_user():
    """Populate ``g.user`` / ``g.session`` from the session cookie."""
    g.session = get_session_from_request()
    g.user = User.query.get(g.session.user_id) if g.session else None


def current_actor():
    """(user id, role) pair passed to the booking core."""
    return g.user.id, primary_role(g.user)


def unauthenticated():
    return jsonify(error="Authentication required"), 401


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            return unauthenticated()
        return fn(*args, **kwargs)
    return wrapper
