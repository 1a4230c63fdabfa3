from .health import health_bp
from .auth import auth_bp
from .auth_logs import auth_logs_bp
