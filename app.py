import logging

import click
from flask import Flask
from flask_migrate import Migrate
from werkzeug.middleware.proxy_fix import ProxyFix

from config import Config
from models import db
from models.user import User
from routes import health_bp, auth_bp, auth_logs_bp
from security.password import hash_password
from utils.auth_context import load_current_user


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    # client_ip() trusts X-Forwarded-For only behind this many proxies
    x_for = app.config.get("PROXY_FIX_X_FOR", 0)
    if x_for:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=x_for)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(auth_logs_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.before_request
    def _load_user():
        load_current_user()

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------

def register_cli(app):
    @app.cli.command("create-user")
    @click.argument("username")
    @click.password_option()
    def create_user(username, password):
        """Create an active user."""
        username = username.strip()
        if User.find_by_login_name(username):
            click.echo("User already exists")
            return
        db.session.add(User(username=username, password_hash=hash_password(password)))
        db.session.commit()
        click.echo(f"{username} created")

    @app.cli.command("activate-user")
    @click.argument("username")
    def activate_user(username):
        """Reactivate a user deactivated after failed logins."""
        user = User.find_by_login_name(username.strip())
        if not user:
            click.echo("User not found")
            return
        user.activate()
        click.echo(f"{user.username} activated")

    @app.cli.command("gc-auth-logs")
    @click.option("--limit", type=int, default=None, help="Entries to keep per user.")
    def gc_auth_logs(limit):
        """Force auth log garbage collection for every user."""
        deleted = 0
        for user in User.query.order_by(User.id).all():
            tracker = user.auth_log
            if limit is not None:
                tracker.retention.limit = limit
            deleted += tracker.gc_auth_logs(force=True)
        click.echo(f"{deleted} auth log entries removed")

#-------------------------
