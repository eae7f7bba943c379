"""Server-side login sessions.

The cookie carries a random token; the database only ever sees its SHA-256.
"""
import hashlib
import logging
import secrets
from datetime import datetime, timedelta

from flask import current_app, has_request_context, request
from sqlalchemy import update

from models import db
from models.session import Session

logger = logging.getLogger(__name__)


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _client_info():
    if not has_request_context():
        return None, None
    ip = request.headers.get("X-Forwarded-For", request.remote_addr)
    return ip, (request.headers.get("User-Agent") or "")[:255] or None


def create_session(user_id: int) -> str:
    """Store a new session for ``user_id`` and return the raw cookie token."""
    raw_token = secrets.token_urlsafe(32)
    lifetime = current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60)
    ip, user_agent = _client_info()

    db.session.add(Session(
        user_id=user_id,
        token_hash=_hash_token(raw_token),
        expires_at=datetime.utcnow() + timedelta(seconds=lifetime),
        ip=ip,
        user_agent=user_agent,
    ))
    db.session.commit()
    return raw_token


def _is_live(sess, now):
    if sess.expires_at <= now:
        return False
    idle = timedelta(seconds=current_app.config.get("IDLE_TIMEOUT_SECONDS", 1200))
    return (sess.last_seen_at or sess.created_at) + idle > now


def get_session_from_request():
    raw_token = request.cookies.get(current_app.config.get("AUTH_COOKIE_NAME", "slotmarket_session"))
    if not raw_token:
        return None

    sess = Session.query.filter_by(token_hash=_hash_token(raw_token), revoked=False).first()
    now = datetime.utcnow()
    if sess is None or not _is_live(sess, now):
        return None

    sess.last_seen_at = now
    db.session.commit()
    return sess


def revoke_session(raw_token: str) -> bool:
    if not raw_token:
        return False
    result = db.session.execute(
        update(Session)
        .where(Session.token_hash == _hash_token(raw_token))
        .values(revoked=True)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    return result.rowcount == 1


def revoke_all_sessions(user_id: int) -> int:
    """Revoke every open session of the user; returns how many were open."""
    result = db.session.execute(
        update(Session)
        .where(Session.user_id == user_id, Session.revoked.is_(False))
        .values(revoked=True)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    if result.rowcount:
        logger.info("Revoked %d session(s) for user %s", result.rowcount, user_id)
    return result.rowcount
