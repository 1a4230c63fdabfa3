from flask import Blueprint, request, jsonify, current_app, g

from security.login_form import LoginForm
from security.session import WebUser
from utils.auth_context import current_token, login_required


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

web_user = WebUser()


def _set_session_cookie(resp, raw_token: str, max_age: int):
    resp.set_cookie(
        current_app.config.get("AUTH_COOKIE_NAME", "authlog_session"),
        raw_token,
        httponly=current_app.config.get("SESSION_COOKIE_HTTPONLY", True),
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=max_age,
        path="/",
    )
    return resp


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    form = LoginForm(data)

    if not form.validate():
        return jsonify(
            error="Login failed",
            errors=form.first_errors(),
            challenge_required=form.challenge_required,
        ), 401

    user = form.identity
    if form.remember_me:
        duration = current_app.config.get("REMEMBER_ME_SECONDS", 30 * 24 * 60 * 60)
        max_age = duration
    else:
        duration = 0
        max_age = current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60)

    # no cookie-based auto-login here: every session starts from a password check
    raw_token = web_user.login(user, duration=duration)

    resp = jsonify(
        message="Login OK",
        last_login_date=user.auth_log.get_last_login_date(),
        pre_last_login_date=user.auth_log.get_pre_last_login_date(),
    )
    return _set_session_cookie(resp, raw_token, max_age), 200


@auth_bp.get("/me")
@login_required
def me():
    tracker = g.user.auth_log
    return jsonify(
        id=g.user.id,
        username=g.user.username,
        last_login_date=tracker.get_last_login_date(),
        pre_last_login_date=tracker.get_pre_last_login_date(),
    ), 200


@auth_bp.post("/logout")
@login_required
def logout():
    web_user.logout(current_token())

    resp = jsonify(message="Logged out")
    resp.delete_cookie(current_app.config.get("AUTH_COOKIE_NAME", "authlog_session"), path="/")
    return resp, 200
