from functools import wraps

from flask import g, jsonify

from utils.auth_context import unauthenticated
from utils.roles import ADMIN, role_names


def require_roles(*allowed: str):
    """Route guard: the user needs one of ``allowed``. ADMIN always passes.

    Usage: @require_roles(BUSINESS)
    """
    allowed = set(allowed)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                return unauthenticated()

            held = set(role_names(user.roles))
            if ADMIN not in held and not held & allowed:
                return jsonify(error="Forbidden"), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator
