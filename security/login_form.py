from flask import current_app

from models.user import User
from security.login_guard import GuardConfig, LoginAttemptGuard
from security.password import verify_password
from utils.forms import Form

INVALID_CREDENTIALS = "Incorrect username or password."


class LoginForm(Form):
    """
    Login form with brute-force protection: the guard may demand robot
    verification before the credentials are checked, and logs failed checks
    against the identity the username refers to.
    """

    fields = ("username", "password", "verify_code", "remember_me")

    def __init__(self, data=None, guard_config: GuardConfig = None, **guard_options):
        super().__init__(data)
        # credentials must be text; other JSON values are reported by validate_required
        self.malformed = set()
        for field in ("username", "password"):
            value = getattr(self, field)
            if value is not None and not isinstance(value, str):
                setattr(self, field, None)
                self.malformed.add(field)
        if self.username is not None:
            self.username = self.username.strip()
        self.remember_me = bool(self.remember_me)

        if guard_config is None:
            guard_config = GuardConfig.from_config(current_app.config, **guard_options)
        self.guard = LoginAttemptGuard(self, guard_config, identity_class=User)

    @property
    def identity(self):
        return self.guard.identity

    @property
    def challenge_required(self) -> bool:
        return self.guard.challenge_required

    def validate_required(self):
        for field in ("username", "password"):
            if field in self.malformed:
                self.add_error(field, f"{self.label(field)} must be a string.")
                continue
            value = getattr(self, field)
            if value is None or (isinstance(value, str) and not value.strip()):
                self.add_error(field, f"{self.label(field)} cannot be blank.")

    def validate_password(self):
        # a failed robot check or a missing field skips the credential check
        if self.has_errors():
            return
        user = self.identity
        if user is None or not user.is_active or not verify_password(self.password, user.password_hash):
            self.add_error("password", INVALID_CREDENTIALS)

    def validate(self) -> bool:
        self.clear_errors()
        self.guard.before_validate()
        self.validate_required()
        self.validate_password()
        self.guard.after_validate()
        return not self.has_errors()
