import hashlib
import secrets
from datetime import datetime, timedelta
from flask import current_app, has_request_context, request

from models import db
from models.session import Session
from security.session_audit import SessionAuditHook
from utils.audit import client_ip

def _hash_token(token: str) -> str:
    # SHA-256 is enough for random session tokens
    return hashlib.sha256(token.encode("utf-8")).hexdigest()

def _request_user_agent():
    if not has_request_context():
        return None
    return (request.headers.get("User-Agent") or "")[:255] or None

def create_session(user_id: int, lifetime: int, persistent: bool = False) -> str:
    """
    Creates a server-side session and returns the RAW token (to set as cookie).
    Only the hash is stored in DB.
    """
    raw_token = secrets.token_urlsafe(32)

    row = Session(
        user_id=user_id,
        token_hash=_hash_token(raw_token),
        expires_at=datetime.utcnow() + timedelta(seconds=lifetime),
        persistent=persistent,
        ip=client_ip(),
        user_agent=_request_user_agent(),
    )
    db.session.add(row)
    db.session.commit()
    return raw_token

def get_session(raw_token: str):
    if not raw_token:
        return None

    now = datetime.utcnow()
    sess = Session.query.filter_by(token_hash=_hash_token(raw_token), revoked=False).first()
    if not sess or sess.expires_at <= now:
        return None

    if not sess.persistent:
        idle_seconds = current_app.config.get("IDLE_TIMEOUT_SECONDS", 1200)
        last_seen = sess.last_seen_at or sess.created_at
        if (last_seen + timedelta(seconds=idle_seconds)) <= now:
            return None

    sess.last_seen_at = now
    db.session.commit()
    return sess

def revoke_session(raw_token: str) -> bool:
    if not raw_token:
        return False
    sess = Session.query.filter_by(token_hash=_hash_token(raw_token)).first()
    if not sess:
        return False
    sess.revoked = True
    db.session.commit()
    return True


class WebUser:
    """
    Login entry point: establishes the server-side session, then runs the
    after-login hooks (auth logging by default) exactly once.
    """

    def __init__(self, hooks=None):
        self.hooks = list(hooks) if hooks is not None else [SessionAuditHook()]

    def login(self, user, duration: int = 0, cookie_based: bool = False) -> str:
        if duration > 0:
            token = create_session(user.id, duration, persistent=True)
        else:
            token = create_session(user.id, current_app.config.get("SESSION_LIFETIME_SECONDS", 28800))

        for hook in self.hooks:
            hook.after_login(user, cookie_based=cookie_based, duration=duration)
        return token

    def logout(self, raw_token: str) -> bool:
        return revoke_session(raw_token)
