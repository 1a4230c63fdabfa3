from functools import wraps
from flask import current_app, g, jsonify, request
from models import db
from models.user import User
from security.session import get_session

def current_token():
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "authlog_session")
    return request.cookies.get(cookie_name)

def load_current_user():
    g.user = None
    g.session = None
    sess = get_session(current_token())
    if not sess:
        return
    user = db.session.get(User, sess.user_id)
    # deactivated accounts lose their open sessions too
    if user is None or not user.is_active:
        return
    g.session = sess
    g.user = user

def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            return jsonify(error="Authentication required"), 401
        return fn(*args, **kwargs)
    return wrapper
