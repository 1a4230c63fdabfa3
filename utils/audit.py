from flask import has_request_context, request

# width of the ip columns on auth_logs and sessions
IP_MAX_LENGTH = 64

def client_ip():
    """
    Address of the peer. Forwarded headers are only honoured through
    ProxyFix (``PROXY_FIX_X_FOR``), which rewrites ``remote_addr``.
    """
    if not has_request_context():
        return None
    return (request.remote_addr or "")[:IP_MAX_LENGTH] or None

def request_auth_log_data(identity=None) -> dict:
    """
    Default extra data for auth log entries: where the attempt came from.
    Empty outside of a request (CLI, tests).
    """
    if not has_request_context():
        return {}

    user_agent = request.headers.get("User-Agent", "")
    return {
        "ip": client_ip(),
        "host": (request.host or "")[:255] or None,
        "url": request.url[:255] if request.url else None,
        "user_agent": user_agent[:255] if user_agent else None,
    }
