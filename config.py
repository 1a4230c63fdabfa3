import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

def _optional_int(name: str, default):
    value = os.getenv(name)
    if value is None:
        return default
    # "0", "off" or an empty value disable the feature
    if value.strip().lower() in ("", "0", "off", "false", "none"):
        return None
    return int(value)

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to this file as authlog.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "authlog.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Number of trusted proxies setting X-Forwarded-For; 0 ignores the header
    PROXY_FIX_X_FOR = int(os.getenv("PROXY_FIX_X_FOR", "0"))

    # Session cookie name for our auth token
    AUTH_COOKIE_NAME = "authlog_session"

    # 8 hours session lifetime, 30 days with "remember me"
    SESSION_LIFETIME_SECONDS = 8 * 60 * 60
    REMEMBER_ME_SECONDS = 30 * 24 * 60 * 60

    # Idle timeout: 20 minutes (not applied to remember-me sessions)
    IDLE_TIMEOUT_SECONDS = 20 * 60

    # Session/cookie security defaults
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = False  # set True when using HTTPS

    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Auth log
    AUTH_LOG_ERROR_DEFAULT = None          # error value marking a successful login
    AUTH_LOG_GC_PROBABILITY = int(os.getenv("AUTH_LOG_GC_PROBABILITY", "100000"))  # per million logins
    AUTH_LOG_GC_LIMIT = int(os.getenv("AUTH_LOG_GC_LIMIT", "1000"))                # entries kept per user

    # Brute-force protection
    LOGIN_CHALLENGE_FIELD = "verify_code"
    CAPTCHA_SESSION_KEY = "captcha_code"
    LOGIN_CHALLENGE_AFTER = _optional_int("LOGIN_CHALLENGE_AFTER", 3)
    LOGIN_DEACTIVATE_AFTER = _optional_int("LOGIN_DEACTIVATE_AFTER", 10)
    LOGIN_DEACTIVATE_IDENTITY = "deactivate"   # User method
    LOGIN_CREDENTIAL_FIELDS = ("password",)
    LOGIN_CREDENTIAL_ERRORS = {"password": "invalid_password"}

    # Basic app settings
    DEBUG = False
