def _default_tracker(identity):
    return identity.auth_log


class SessionAuditHook:
    """
    Writes a successful auth log entry once a user session is established.
    Registered on :class:`security.session.WebUser` as an after-login hook.
    """

    def __init__(self, tracker_for=None):
        self.tracker_for = tracker_for if tracker_for is not None else _default_tracker

    def after_login(self, identity, cookie_based: bool = False, duration: int = 0):
        return self.tracker_for(identity).log_auth({
            "cookie_based": cookie_based,
            "duration": duration,
        })
