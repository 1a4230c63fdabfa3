"""
Brute-force protection for a login form.

Two levels of protection are provided:

- robot verification (CAPTCHA) after ``challenge_after`` failed logins in a row
- deactivation of the identity after ``deactivate_after`` failed logins in a row

The form calls :meth:`LoginAttemptGuard.before_validate` before checking
credentials and :meth:`LoginAttemptGuard.after_validate` afterwards.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Tuple, Union

from security.challenge import create_rule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuardConfig:
    # form field holding the CAPTCHA code; None disables robot verification
    challenge_field: Optional[str] = None
    challenge_rule: Any = ("captcha",)
    # failure run length requiring robot verification; None/False disables it
    challenge_after: Union[int, bool, None] = 3
    # failure run length triggering deactivation; None/False disables it
    deactivate_after: Union[int, bool, None] = 10
    # fields whose validation errors mean "authentication failed", checked in order
    credential_fields: Tuple[str, ...] = ("password",)
    # field -> error token written to the log, the field name by default
    credential_errors: Mapping[str, Any] = field(default_factory=dict)
    # owner method name or callback returning the identity; None looks up by username
    find_identity: Union[str, Callable, None] = None
    # identity method name or callback(identity); None never deactivates
    deactivate_identity: Union[str, Callable, None] = None

    @classmethod
    def from_config(cls, config, **overrides) -> "GuardConfig":
        values = dict(
            challenge_field=config.get("LOGIN_CHALLENGE_FIELD"),
            challenge_rule=config.get(
                "LOGIN_CHALLENGE_RULE",
                ("captcha", {"session_key": config.get("CAPTCHA_SESSION_KEY", "captcha_code")}),
            ),
            challenge_after=config.get("LOGIN_CHALLENGE_AFTER", 3),
            deactivate_after=config.get("LOGIN_DEACTIVATE_AFTER", 10),
            credential_fields=tuple(config.get("LOGIN_CREDENTIAL_FIELDS", ("password",))),
            credential_errors=dict(config.get("LOGIN_CREDENTIAL_ERRORS") or {}),
            deactivate_identity=config.get("LOGIN_DEACTIVATE_IDENTITY"),
        )
        values.update(overrides)
        return cls(**values)

    @staticmethod
    def _enabled(threshold) -> bool:
        return threshold is not None and threshold is not False

    @property
    def challenge_enabled(self) -> bool:
        return self.challenge_field is not None and self._enabled(self.challenge_after)

    @property
    def deactivation_enabled(self) -> bool:
        return self.deactivate_identity is not None and self._enabled(self.deactivate_after)


def _default_tracker(identity):
    return identity.auth_log


class LoginAttemptGuard:

    def __init__(self, owner, config: GuardConfig = None, identity_class=None, tracker_for=None):
        self.owner = owner
        self.config = config if config is not None else GuardConfig()
        self.identity_class = identity_class
        self.tracker_for = tracker_for if tracker_for is not None else _default_tracker

        self._identity = None
        self._identity_loaded = False
        self._challenge_required = None

    # Identity :

    @property
    def identity(self):
        if not self._identity_loaded:
            self._identity = self._resolve_identity()
            self._identity_loaded = True
        return self._identity

    def set_identity(self, identity):
        self._identity = identity
        self._identity_loaded = True

    def _resolve_identity(self):
        finder = self.config.find_identity
        if finder is None:
            return self.find_identity()
        if isinstance(finder, str):
            return getattr(self.owner, finder)()
        return finder()

    def find_identity(self):
        """Default lookup: ``identity_class.find_by_login_name(owner.username)``."""
        login_name = getattr(self.owner, "username", None)
        if not isinstance(login_name, str):
            return None
        login_name = login_name.strip()
        if not login_name or self.identity_class is None:
            return None
        return self.identity_class.find_by_login_name(login_name)

    # Robot verification :

    @property
    def challenge_required(self) -> bool:
        if self._challenge_required is None:
            self._challenge_required = self._find_challenge_required()
        return self._challenge_required

    @challenge_required.setter
    def challenge_required(self, value: bool):
        self._challenge_required = value

    def _find_challenge_required(self) -> bool:
        if not self.config.challenge_enabled:
            return False
        identity = self.identity
        if identity is None:
            return False
        required = self.tracker_for(identity).has_failed_login_sequence(self.config.challenge_after)
        if required:
            logger.info("Robot verification required for user %s", identity.id)
        return required

    def verify_challenge(self) -> bool:
        rule = create_rule(self.config.challenge_rule)
        return rule.validate(self.owner, self.config.challenge_field)

    # Logging :

    def log_auth_error(self, error, data=None):
        identity = self.identity
        if identity is not None:
            self.tracker_for(identity).log_auth_error(error, data)

    def deactivate_identity(self):
        """
        Runs the configured deactivation action. Returns ``False`` when there
        is nothing to deactivate or the action is not available.
        """
        identity = self.identity
        action = self.config.deactivate_identity
        if identity is None or action is None:
            return False

        if isinstance(action, str):
            method = getattr(identity, action, None)
            if not callable(method):
                logger.warning("Identity has no deactivation method %r", action)
                return False
            call = method
        else:
            def call():
                return action(identity)

        try:
            result = call()
        except Exception:
            logger.exception("Unable to deactivate user %s", getattr(identity, "id", None))
            return False

        if result:
            logger.warning("User %s deactivated after a failed login sequence", getattr(identity, "id", None))
        return result

    # Form lifecycle :

    def before_validate(self):
        if self.challenge_required:
            self.verify_challenge()

    def after_validate(self):
        identity = self.identity
        if identity is None:
            return

        for attribute in self.config.credential_fields:
            if self.owner.has_errors(attribute) and getattr(self.owner, attribute, None):
                token = self.config.credential_errors.get(attribute, attribute)
                self.log_auth_error(token)
                # the new failure may complete the run that requires robot verification
                self._challenge_required = None

                if self.config.deactivation_enabled:
                    if self.tracker_for(identity).has_failed_login_sequence(self.config.deactivate_after):
                        self.deactivate_identity()
                break
